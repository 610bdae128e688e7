from tryon.core.config import Settings


def test_defaults():
    config = Settings(_env_file=None, PUBLIC_BASE_URL=None, PORT=5000, ENVIRONMENT="development")

    assert config.allowed_mime_types == ("image/jpeg", "image/jpg", "image/png", "image/webp")
    assert config.local_uploads_url == "http://localhost:5000/uploads"
    assert config.MAX_FILE_SIZE_BYTES == 10 * 1024 * 1024
    assert config.REPLICATE_MODEL.startswith("cuuupid/idm-vton:")
    assert config.is_production is False


def test_public_base_url_overrides_localhost():
    config = Settings(_env_file=None, PUBLIC_BASE_URL="https://tryon.example.com/")
    assert config.local_uploads_url == "https://tryon.example.com/uploads"


def test_production_flag():
    assert Settings(_env_file=None, ENVIRONMENT="production").is_production is True


def test_firebase_credentials_tuple():
    config = Settings(
        _env_file=None,
        FIREBASE_PROJECT_ID="p",
        FIREBASE_PRIVATE_KEY="k",
        FIREBASE_CLIENT_EMAIL="e",
        FIREBASE_STORAGE_BUCKET="b",
    )
    assert config.firebase_credentials == ("p", "k", "e", "b")
