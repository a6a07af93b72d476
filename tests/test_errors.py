from maniai.errors import (
    AssetFetchError,
    ErrorKind,
    GenerationFailedError,
    PermissionDeniedError,
    ProviderError,
    QuotaExceededError,
    classify_operation_error,
    classify_provider_error,
    describe_error,
    wrap_provider_error,
)


class _ApiError(Exception):
    def __init__(self, code, status, message):
        super().__init__(message)
        self.code = code
        self.status = status


def test_structured_fields_win_over_message():
    assert classify_provider_error(_ApiError(429, None, "slow down")) is ErrorKind.QUOTA
    assert classify_provider_error(_ApiError(403, "PERMISSION_DENIED", "")) is ErrorKind.PERMISSION
    assert classify_provider_error(_ApiError(404, "NOT_FOUND", "")) is ErrorKind.PERMISSION
    assert classify_provider_error(_ApiError(500, "INTERNAL", "Quota exceeded")) is ErrorKind.QUOTA


def test_message_signatures_are_a_fallback():
    assert classify_provider_error(RuntimeError("RESOURCE_EXHAUSTED")) is ErrorKind.QUOTA
    assert (
        classify_provider_error(RuntimeError("You exceeded your current quota"))
        is ErrorKind.QUOTA
    )
    assert (
        classify_provider_error(RuntimeError("Requested entity was not found."))
        is ErrorKind.PERMISSION
    )
    assert classify_provider_error(RuntimeError("socket reset")) is ErrorKind.TRANSIENT


def test_wrap_provider_error_picks_subclass_and_keeps_context():
    quota = wrap_provider_error(RuntimeError("RESOURCE_EXHAUSTED"), "Video generation failed")
    assert isinstance(quota, QuotaExceededError)
    assert str(quota).startswith("Video generation failed: ")

    denied = wrap_provider_error(_ApiError(401, "UNAUTHENTICATED", "bad key"), "Chat")
    assert isinstance(denied, PermissionDeniedError)

    generic = wrap_provider_error(RuntimeError("boom"), "Chat")
    assert type(generic) is ProviderError
    assert generic.kind is ErrorKind.TRANSIENT


def test_describe_error_gives_billing_guidance():
    assert "billing" in describe_error(QuotaExceededError("x"))
    assert "API key" in describe_error(PermissionDeniedError("x"))
    assert "could not be downloaded" in describe_error(AssetFetchError("403", status_code=403))


def test_operation_errors_use_rpc_codes_then_message():
    assert classify_operation_error({"code": 8, "message": "busy"}) is ErrorKind.QUOTA
    assert classify_operation_error({"code": 7, "message": ""}) is ErrorKind.PERMISSION
    assert (
        classify_operation_error({"code": 3, "message": "RESOURCE_EXHAUSTED: try later"})
        is ErrorKind.QUOTA
    )
    assert classify_operation_error({"code": 3, "message": "prompt rejected"}) is ErrorKind.TRANSIENT


def test_describe_error_follows_generation_failure_kind():
    quota = GenerationFailedError("Video generation failed: busy", kind=ErrorKind.QUOTA)
    denied = GenerationFailedError("Video generation failed: nope", kind=ErrorKind.PERMISSION)
    assert "billing" in describe_error(quota)
    assert "API key" in describe_error(denied)
    assert describe_error(GenerationFailedError("no video")) == "no video"
