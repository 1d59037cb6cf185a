import logging

from gotrabandhus.core.config import DEVELOPMENT_JWT_SECRET, Settings
from gotrabandhus.main import create_app


def test_defaults():
    settings = Settings(JWT_SECRET=DEVELOPMENT_JWT_SECRET, _env_file=None)
    assert settings.ACCESS_TOKEN_EXPIRE_DAYS == 7
    assert settings.PASSWORD_HASH_ROUNDS == 10
    assert settings.JWT_ALGORITHM == "HS256"
    assert settings.uses_fallback_secret()


def test_cors_origins_from_string_and_list():
    assert Settings(CORS_ORIGINS="http://a, http://b,", _env_file=None).get_cors_origins() == [
        "http://a", "http://b"]
    assert Settings(CORS_ORIGINS=["http://c"], _env_file=None).get_cors_origins() == ["http://c"]


def test_fallback_secret_is_logged(settings, caplog):
    insecure = settings.model_copy(update={"JWT_SECRET": DEVELOPMENT_JWT_SECRET})
    with caplog.at_level(logging.WARNING, logger="gotrabandhus.main"):
        create_app(insecure)
    assert "development fallback secret" in caplog.text


def test_configured_secret_is_used(settings):
    app = create_app(settings)
    token = app.state.token_service.issue(1)
    assert app.state.token_service.verify(token) == "1"
    assert not settings.uses_fallback_secret()
