from .class_label_change_filter import ClassLabelChangeFilter
from .class_label_filter import ClassLabelFilter

__all__ = [
    "ClassLabelChangeFilter",
    "ClassLabelFilter",
]
