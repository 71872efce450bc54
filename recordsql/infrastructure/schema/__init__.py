"""Record metadata introspection."""

from .introspector import SchemaIntrospector, describe_record

__all__ = ["SchemaIntrospector", "describe_record"]
