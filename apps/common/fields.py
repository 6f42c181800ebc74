import uuid
import base58
from django.db import models
from django.conf import settings


def generate_base58_id() -> str:
    """
    Base58 encoded UUIDv5 derived from the platform namespace and a fresh UUIDv4.
    Always 22 characters or fewer.
    """
    record_uuid = uuid.uuid4()
    uuid_obj = uuid.uuid5(settings.PLATFORM_NAMESPACE, str(record_uuid))
    return base58.b58encode(uuid_obj.bytes).decode('ascii')


class Base58UUIDv5Field(models.CharField):
    """
    Primary key field holding a Base58 encoded UUIDv5.

    A new id is generated when the model is instantiated without one, so
    records can still be created with a caller-chosen id (tests, imports).
    """
    description = "A Base58 encoded UUIDv5 identifier."

    def __init__(self, *args, **kwargs):
        kwargs['max_length'] = 22
        kwargs['unique'] = True
        kwargs['editable'] = False
        kwargs.setdefault('default', generate_base58_id)
        super().__init__(*args, **kwargs)

    def generate_id(self) -> str:
        return generate_base58_id()

    def deconstruct(self):
        name, path, args, kwargs = super().deconstruct()
        for key in ('max_length', 'unique', 'editable', 'default'):
            kwargs.pop(key, None)
        return name, path, args, kwargs
