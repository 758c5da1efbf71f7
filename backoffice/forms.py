from django.forms.models import model_to_dict


class PayloadFormMixin:
    """
    Build a bound form from a decoded JSON object.

    `payload_aliases` maps wire keys (camelCase) to form field names. With an
    instance, keys missing from the payload keep the instance's current value.
    Plain forms get the same partial-update behaviour by passing `base`, a dict
    of current values keyed by field name.
    """
    payload_aliases = {}

    @classmethod
    def from_payload(cls, payload, instance=None, base=None, **kwargs):
        data = {}
        if instance is not None and getattr(cls, "_meta", None) is not None:
            data.update(model_to_dict(instance, fields=cls._meta.fields))
        if base:
            data.update(base)
        for key, value in payload.items():
            data[cls.payload_aliases.get(key, key)] = value
        if instance is not None:
            kwargs["instance"] = instance
        return cls(data=data, **kwargs)
