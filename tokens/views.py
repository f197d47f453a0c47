import logging

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema, inline_serializer
from rest_framework import serializers, status
from rest_framework.response import Response
from rest_framework.views import APIView

from tokens.exceptions import store_error_response
from tokens.github import RemoteStoreError
from tokens.serializers import (
    BulkDeleteSerializer,
    ImportResponseSerializer,
    ImportSerializer,
    TokenSerializer,
    TokenWriteSerializer,
    WhatsAppImportSerializer,
)
from tokens.services import TokenStoreError, get_token_store
from tokens.whatsapp import messages_to_items, parse_chat

logger = logging.getLogger(__name__)

TOKEN_ID_PARAMETER = OpenApiParameter(
    name="token_id",
    type=str,
    location=OpenApiParameter.PATH,
    description="The id of the token",
)

TokenEnvelopeSerializer = inline_serializer(
    name="TokenEnvelope",
    fields={
        "success": serializers.BooleanField(),
        "message": serializers.CharField(),
        "token": TokenSerializer(),
    },
)

TokenListEnvelopeSerializer = inline_serializer(
    name="TokenListEnvelope",
    fields={
        "success": serializers.BooleanField(),
        "tokens": TokenSerializer(many=True),
    },
)


def _token_response(token, message: str) -> Response:
    return Response(
        {"success": True, "message": message, "token": TokenSerializer(token).data},
        status=status.HTTP_200_OK,
    )


def _import_response(result) -> Response:
    data = {
        "success": True,
        "message": f"Imported {len(result.created)} tokens, skipped {len(result.skipped)}",
        "created": TokenSerializer(result.created, many=True).data,
        "skipped": result.skipped,
    }
    return Response(data, status=status.HTTP_200_OK)


class TokenListView(APIView):
    """List all tokens or add a new one."""

    @extend_schema(
        operation_id="list_tokens",
        summary="List tokens",
        description="Fetch the tokens file from GitHub and return every record in file order.",
        responses={
            200: OpenApiResponse(response=TokenListEnvelopeSerializer, description="All stored tokens"),
            500: OpenApiResponse(description="GitHub could not be read"),
        },
        tags=["Tokens"],
    )
    def get(self, request):
        try:
            tokens = get_token_store().list()
        except RemoteStoreError as e:
            logger.error(f"Error fetching tokens: {e}")
            return store_error_response(e, "Failed to fetch tokens from GitHub")

        return Response({"success": True, "tokens": TokenSerializer(tokens, many=True).data})

    @extend_schema(
        operation_id="create_token",
        summary="Add a token",
        description="Append a token to the file and commit it. The token value must not already be stored.",
        request=TokenWriteSerializer,
        responses={
            200: OpenApiResponse(response=TokenEnvelopeSerializer, description="The created token"),
            400: OpenApiResponse(description="Empty name or token, or the token already exists"),
            500: OpenApiResponse(description="GitHub read or commit failed"),
        },
        tags=["Tokens"],
    )
    def post(self, request):
        serializer = TokenWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            token = get_token_store().insert(
                data.get("name"),
                data.get("token"),
                tag=data.get("tag") or "",
                created_at=data.get("createdAt"),
            )
        except (TokenStoreError, RemoteStoreError) as e:
            return store_error_response(e, "Failed to add token")

        return _token_response(token, "Token added successfully")


class TokenDetailView(APIView):
    """Edit or delete a single token."""

    @extend_schema(
        operation_id="update_token",
        summary="Edit a token",
        description="Replace the name, token and tag of an existing token. createdAt changes only when supplied.",
        parameters=[TOKEN_ID_PARAMETER],
        request=TokenWriteSerializer,
        responses={
            200: OpenApiResponse(response=TokenEnvelopeSerializer, description="The updated token"),
            400: OpenApiResponse(description="Empty name or token"),
            404: OpenApiResponse(description="Token not found"),
            500: OpenApiResponse(description="GitHub read or commit failed"),
        },
        tags=["Tokens"],
    )
    def put(self, request, token_id: str):
        serializer = TokenWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            token = get_token_store().update(
                token_id,
                data.get("name"),
                data.get("token"),
                tag=data.get("tag") or "",
                created_at=data.get("createdAt"),
            )
        except (TokenStoreError, RemoteStoreError) as e:
            return store_error_response(e, "Failed to update token")

        return _token_response(token, "Token updated successfully")

    @extend_schema(
        operation_id="delete_token",
        summary="Delete a token",
        description="Remove a token from the file and commit. Returns the deleted record.",
        parameters=[TOKEN_ID_PARAMETER],
        responses={
            200: OpenApiResponse(response=TokenEnvelopeSerializer, description="The deleted token"),
            404: OpenApiResponse(description="Token not found"),
            500: OpenApiResponse(description="GitHub read or commit failed"),
        },
        tags=["Tokens"],
    )
    def delete(self, request, token_id: str):
        try:
            token = get_token_store().delete(token_id)
        except (TokenStoreError, RemoteStoreError) as e:
            return store_error_response(e, "Failed to delete token")

        return _token_response(token, "Token deleted successfully")


class TokenImportView(APIView):
    """Add many tokens in a single commit."""

    @extend_schema(
        operation_id="import_tokens",
        summary="Import tokens",
        description="Add a list of tokens in one commit. Empty and duplicate tokens are skipped and reported.",
        request=ImportSerializer,
        responses={
            200: OpenApiResponse(response=ImportResponseSerializer, description="Created and skipped tokens"),
            400: OpenApiResponse(description="Empty or oversized token list"),
            500: OpenApiResponse(description="GitHub read or commit failed"),
        },
        tags=["Import"],
    )
    def post(self, request):
        serializer = ImportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = get_token_store().import_tokens(serializer.validated_data["tokens"])
        except RemoteStoreError as e:
            return store_error_response(e, "Failed to import tokens")

        return _import_response(result)


class WhatsAppImportView(APIView):
    """Import tokens from an exported WhatsApp chat, dated by when they were sent."""

    @extend_schema(
        operation_id="import_whatsapp_chat",
        summary="Import tokens from a WhatsApp chat export",
        description=(
            "Parse an exported chat and add each message as a token named after its sender, "
            "with createdAt set to the message time. Media placeholders and system notices are ignored."
        ),
        request=WhatsAppImportSerializer,
        responses={
            200: OpenApiResponse(response=ImportResponseSerializer, description="Created and skipped tokens"),
            400: OpenApiResponse(description="No messages found in the chat"),
            500: OpenApiResponse(description="GitHub read or commit failed"),
        },
        tags=["Import"],
    )
    def post(self, request):
        serializer = WhatsAppImportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        messages = parse_chat(serializer.validated_data["text"])
        if not messages:
            return Response(
                {"success": False, "message": "No messages found in the chat export"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        items = messages_to_items(messages, tag=serializer.validated_data["tag"])
        try:
            result = get_token_store().import_tokens(items)
        except RemoteStoreError as e:
            return store_error_response(e, "Failed to import tokens")

        return _import_response(result)


class BulkDeleteView(APIView):
    """Delete several tokens in a single commit."""

    @extend_schema(
        operation_id="bulk_delete_tokens",
        summary="Delete several tokens",
        description="Remove every listed token in one commit. Unknown ids are ignored.",
        request=BulkDeleteSerializer,
        responses={
            200: OpenApiResponse(response=TokenListEnvelopeSerializer, description="The deleted tokens"),
            400: OpenApiResponse(description="No ids given"),
            404: OpenApiResponse(description="None of the ids exist"),
            500: OpenApiResponse(description="GitHub read or commit failed"),
        },
        tags=["Tokens"],
    )
    def post(self, request):
        serializer = BulkDeleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            removed = get_token_store().delete_many(serializer.validated_data["ids"])
        except (TokenStoreError, RemoteStoreError) as e:
            return store_error_response(e, "Failed to delete tokens")

        return Response(
            {
                "success": True,
                "message": f"Deleted {len(removed)} tokens",
                "tokens": TokenSerializer(removed, many=True).data,
            },
            status=status.HTTP_200_OK,
        )


class HealthCheckView(APIView):
    """Health check and configured target."""

    @extend_schema(
        operation_id="health_check",
        summary="Health check",
        description="Reports that the service is up and which GitHub file it manages. Does not contact GitHub.",
        responses={200: OpenApiResponse(description="Service is running")},
        tags=["Health & Monitoring"],
    )
    def get(self, request):
        config = get_token_store().config
        return Response(
            {
                "status": "OK",
                "message": "Token Management System is running",
                "github": {
                    "owner": config.owner,
                    "repo": config.repo,
                    "file": config.file_path,
                },
            },
            status=status.HTTP_200_OK,
        )
