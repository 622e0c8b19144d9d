from __future__ import annotations

from rest_framework import serializers

TRUE_TOKENS = {"1", "true", "yes", "y", "on"}
FALSE_TOKENS = {"0", "false", "no", "n", "off"}


def parse_loose_bool(value, default=None):
    """Interpret query-string style booleans.

    Returns ``default`` for anything that is not a recognised token, so a
    malformed flag never becomes an error.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value in (0, 1):
            return bool(value)
        return default
    if isinstance(value, str):
        token = value.strip().lower()
        if token in TRUE_TOKENS:
            return True
        if token in FALSE_TOKENS:
            return False
    return default


class LooseBooleanField(serializers.Field):
    """Boolean field that maps unrecognised input to ``None`` instead of failing."""

    def __init__(self, **kwargs):
        kwargs.setdefault("required", False)
        kwargs.setdefault("allow_null", True)
        kwargs.setdefault("default", None)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        return parse_loose_bool(data)

    def to_representation(self, value):
        return parse_loose_bool(value)


class ListQuerySerializer(serializers.Serializer):
    """Common list-endpoint query parameters.

    ``status`` and ``type`` accept comma separated values; the allowed values
    are supplied per endpoint through the ``status_choices`` and
    ``type_choices`` context keys.
    """

    page = serializers.IntegerField(min_value=1, default=1)
    pageSize = serializers.IntegerField(min_value=1, max_value=50, default=20)
    search = serializers.CharField(required=False, allow_blank=True, max_length=200)
    status = serializers.CharField(required=False, allow_blank=True)
    type = serializers.CharField(required=False, allow_blank=True)
    mine = LooseBooleanField()

    def _split_choices(self, value: str, context_key: str) -> list[str]:
        values = [item.strip().upper() for item in value.split(",") if item.strip()]
        allowed = self.context.get(context_key)
        if allowed:
            invalid = [item for item in values if item not in allowed]
            if invalid:
                raise serializers.ValidationError(
                    f"Unsupported value(s): {', '.join(invalid)}. Allowed: {', '.join(sorted(allowed))}."
                )
        return values

    def validate_search(self, value: str) -> str:
        return value.strip()

    def validate_status(self, value: str) -> list[str]:
        return self._split_choices(value, "status_choices")

    def validate_type(self, value: str) -> list[str]:
        return self._split_choices(value, "type_choices")
