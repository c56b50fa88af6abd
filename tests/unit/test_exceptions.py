from threadscope.core.exceptions import (
    InputNotFoundError,
    MalformedInputError,
    ThreadscopeError,
    UpstreamServiceError,
)


def test_base_error_attributes():
    err = ThreadscopeError("oops", correlation_id="cid-1")
    assert str(err) == "oops"
    assert err.correlation_id == "cid-1"


def test_input_not_found_holds_path(tmp_path):
    err = InputNotFoundError("missing", path=tmp_path / "x.json", correlation_id="c2")
    assert isinstance(err, ThreadscopeError)
    assert err.path.endswith("x.json")
    assert err.correlation_id == "c2"


def test_malformed_input_validation_errors_attached():
    err = MalformedInputError("bad data", validation_errors=[{"loc": ("id",)}])
    assert err.validation_errors == [{"loc": ("id",)}]
    assert err.path is None
    assert MalformedInputError("bad").validation_errors == []


def test_upstream_error_service_and_status():
    err = UpstreamServiceError("down", service="ollama-embeddings", status_code=503)
    assert err.service == "ollama-embeddings"
    assert err.status_code == 503
