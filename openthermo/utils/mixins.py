"""
Mixin classes for file handling and subclass registration.

- FileMixin: path helpers and cached line contents
- YAMLFileMixin: YAML parsing on top of FileMixin
- RegistryMixin: automatic subclass registration, used by the loaders
"""

import inspect
import os
from functools import cached_property


class FileMixin:
    """
    Mixin class for files that can be opened and read.

    Subclasses provide a ``filename`` attribute.
    """

    @property
    def filepath(self):
        return os.path.abspath(self.filename)

    @cached_property
    def contents(self):
        """File contents as a list of stripped lines."""
        with open(self.filepath, "r", errors="replace") as f:
            return [line.strip() for line in f.readlines()]

    @cached_property
    def content_lines_string(self):
        with open(self.filepath, "r", errors="replace") as f:
            return f.read()


class YAMLFileMixin(FileMixin):
    """
    Mixin class for YAML file handling and parsing.
    """

    @cached_property
    def yaml_contents_dict(self):
        """
        Parse YAML file contents into a Python object.

        Uses ``yaml.safe_load``; returns a dict for mapping documents and
        None for empty files.
        """
        import yaml

        return yaml.safe_load(self.content_lines_string)


class RegistryMeta(type):
    """
    Metaclass that seeds a shared subclass registry on the root class.
    """

    def __init__(cls, name, bases, dct):
        super().__init__(name, bases, dct)
        # Only initialize _REGISTRY in the root parent class
        if not hasattr(cls, "_REGISTRY"):
            cls._REGISTRY = []


class RegistryMixin(metaclass=RegistryMeta):
    """
    Mixin to automatically register subclasses in a shared registry.
    """

    # Flag to control whether this class should be registered in the registry
    REGISTERABLE = True

    @classmethod
    def subclasses(cls, allow_abstract=False):
        return [
            c
            for c in cls._REGISTRY
            if issubclass(c, cls)
            and c != cls
            and (not inspect.isabstract(c) or allow_abstract)
        ]

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if cls.REGISTERABLE:
            cls._REGISTRY.append(cls)
