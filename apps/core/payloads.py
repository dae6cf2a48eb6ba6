"""
Tagged payload variants stored in JSON columns.

A payload is a frozen dataclass with a ``kind`` class attribute. A registry
knows a closed set of variants and converts them to and from plain dicts.
"""
from dataclasses import asdict, fields


class PayloadRegistry:
    def __init__(self, *types):
        self.types = {cls.kind: cls for cls in types}

    def __contains__(self, cls):
        return cls in self.types.values()

    def dump(self, payload) -> dict:
        if type(payload) not in self:
            raise TypeError(f"Unregistered payload type {type(payload).__name__}")
        data = asdict(payload)
        for key, value in data.items():
            if isinstance(value, tuple):
                data[key] = list(value)
        data['kind'] = payload.kind
        return data

    def load(self, data):
        """Rebuild a payload from stored JSON. Unknown kinds yield ``None``."""
        if not data:
            return None
        cls = self.types.get(data.get('kind'))
        if cls is None:
            return None
        values = {}
        for f in fields(cls):
            if f.name in data:
                value = data[f.name]
                values[f.name] = tuple(value) if isinstance(value, list) else value
        return cls(**values)
