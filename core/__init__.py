# core package
# Expose main classes for convenience

from .component import ComponentInstance, PropertyValue, View, ItemRole
from .device_kind import DeviceKind, classify_family
from .pin import Pin
from .net import Net
