from rest_framework import serializers

MAX_IMPORT_SIZE = 1000  # items per import request


class TokenSerializer(serializers.Serializer):
    """Read-only representation of a stored token."""

    id = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    value = serializers.CharField(read_only=True)
    tag = serializers.CharField(read_only=True)
    createdAt = serializers.CharField(source="created_at", read_only=True)


class TokenWriteSerializer(serializers.Serializer):
    """
    Body for creating or editing a token.

    Blank name/token pass through here so the store can reject them with its
    own message before touching the remote file.
    """

    name = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        trim_whitespace=False,
        help_text="Display name for the token. Required, cannot be blank.",
    )
    token = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        trim_whitespace=False,
        help_text="The secret value. Required, must be unique on create.",
    )
    tag = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text="Free-text tag, e.g. production or staging.",
    )
    createdAt = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        help_text="ISO-8601 timestamp. Defaults to now on create, unchanged on edit.",
    )


class ImportItemSerializer(serializers.Serializer):
    """A single token in an import request. Accepts either `token` or `value`."""

    name = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    token = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    value = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    tag = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    createdAt = serializers.CharField(required=False, allow_blank=True, allow_null=True)

    def to_internal_value(self, data):
        item = super().to_internal_value(data)
        return {
            "name": item.get("name") or "",
            "value": item.get("token") or item.get("value") or "",
            "tag": item.get("tag") or "",
            "createdAt": item.get("createdAt"),
        }


class ImportSerializer(serializers.Serializer):
    """Body for importing many tokens in one commit."""

    tokens = ImportItemSerializer(many=True, help_text="Tokens to add; duplicates are skipped")

    def validate_tokens(self, tokens):
        if not tokens:
            raise serializers.ValidationError("At least one token is required")
        if len(tokens) > MAX_IMPORT_SIZE:
            raise serializers.ValidationError(
                f"Import size {len(tokens)} exceeds maximum of {MAX_IMPORT_SIZE} tokens"
            )
        return tokens


class WhatsAppImportSerializer(serializers.Serializer):
    """Body for importing tokens from an exported WhatsApp chat."""

    text = serializers.CharField(trim_whitespace=False, help_text="Contents of the exported chat .txt file")
    tag = serializers.CharField(required=False, allow_blank=True, default="")


class BulkDeleteSerializer(serializers.Serializer):
    """Body for deleting several tokens in one commit."""

    ids = serializers.ListField(
        child=serializers.CharField(),
        allow_empty=False,
        help_text="Ids of the tokens to delete; unknown ids are ignored",
    )


class SkippedItemSerializer(serializers.Serializer):
    index = serializers.IntegerField()
    name = serializers.CharField()
    reason = serializers.CharField()


class ImportResponseSerializer(serializers.Serializer):
    """Outcome of an import."""

    success = serializers.BooleanField()
    message = serializers.CharField()
    created = TokenSerializer(many=True)
    skipped = SkippedItemSerializer(many=True)
