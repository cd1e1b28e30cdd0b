import pytest

from civic_connect.client.session_cache import TOKEN_KEY, ApiError, SessionCache, to_api_fields
from civic_connect.client.storage import FileTokenStorage, MemoryTokenStorage

DEMO_PHONE = "9167767684"


@pytest.fixture()
def storage():
    return MemoryTokenStorage()


@pytest.fixture()
def cache(client, storage):
    return SessionCache(base_url="http://testserver/api", storage=storage, http_client=client)


def signed_in(cache):
    cache.sign_in_with_phone(DEMO_PHONE)
    result = cache.verify_otp(DEMO_PHONE, "2308")
    assert result.success is True
    return result


def test_restore_without_token(cache):
    assert cache.loading is True
    assert cache.restore() is False
    assert cache.loading is False
    assert cache.user is None


def test_sign_in_stores_token_and_loads_profile(cache, storage):
    data = cache.sign_in_with_phone(DEMO_PHONE)
    assert data["otp"] == "2308"

    result = cache.verify_otp(DEMO_PHONE, "2308")
    assert result.success is True
    assert result.has_language is False
    assert result.has_role is False
    assert result.profile_complete is False
    assert storage.get_item(TOKEN_KEY)
    assert cache.user["phone_number"] == DEMO_PHONE
    assert cache.session["token"] == storage.get_item(TOKEN_KEY)
    assert cache.effective_language == "en"


def test_wrong_code_does_not_sign_in(cache, storage):
    result = cache.verify_otp(DEMO_PHONE, "0000")
    assert result.success is False
    assert storage.get_item(TOKEN_KEY) is None


def test_restore_from_stored_token(client, cache, storage):
    signed_in(cache)
    cache.update_profile(firstName="Asha", role="citizen")

    fresh = SessionCache(base_url="http://testserver/api", storage=storage, http_client=client)
    assert fresh.restore() is True
    assert fresh.loading is False
    assert fresh.session is not None
    assert fresh.profile.first_name == "Asha"
    assert fresh.profile_complete is False


def test_restore_clears_rejected_token(cache, storage):
    storage.set_item(TOKEN_KEY, "bogus")
    assert cache.restore() is False
    assert storage.get_item(TOKEN_KEY) is None
    assert cache.loading is False


def test_update_profile_accepts_camel_case(cache):
    signed_in(cache)
    profile = cache.update_profile(
        firstName="Asha",
        lastName="Patil",
        dateOfBirth="1990-05-03",
        email="asha@example.com",
        state="Maharashtra",
        district="Pune",
        taluka="Haveli",
        role="citizen",
    )
    assert profile.date_of_birth == "1990-05-03"
    assert cache.profile_complete is True

    cache.update_profile(district=None)
    assert cache.profile.district is None
    assert cache.profile_complete is False


def test_update_profile_requires_token(cache):
    with pytest.raises(ApiError) as exc:
        cache.update_profile(firstName="Asha")
    assert exc.value.status_code == 401


def test_to_api_fields_rejects_unknown_keys():
    assert to_api_fields({"firstName": "A", "last_name": "B"}) == {"first_name": "A", "last_name": "B"}
    with pytest.raises(TypeError):
        to_api_fields({"phoneNumber": "9876543210"})


def test_set_language_persists_for_signed_in_user(client, cache, storage):
    cache.set_language("hi")
    assert cache.effective_language == "hi"

    signed_in(cache)
    cache.set_language("mr")
    assert cache.user["language"] == "mr"

    fresh = SessionCache(base_url="http://testserver/api", storage=storage, http_client=client)
    fresh.restore()
    assert fresh.language == "mr"


def test_sign_out_clears_everything(cache, storage):
    signed_in(cache)
    token = storage.get_item(TOKEN_KEY)
    cache.sign_out()
    assert storage.get_item(TOKEN_KEY) is None
    assert cache.user is None and cache.session is None and cache.profile is None
    assert cache.effective_language == "en"

    storage.set_item(TOKEN_KEY, token)
    assert cache.restore() is False


def test_file_token_storage(tmp_path):
    path = tmp_path / "state" / "tokens.json"
    store = FileTokenStorage(path)
    assert store.get_item(TOKEN_KEY) is None
    store.set_item(TOKEN_KEY, "abc")
    assert FileTokenStorage(path).get_item(TOKEN_KEY) == "abc"
    store.remove_item(TOKEN_KEY)
    assert store.get_item(TOKEN_KEY) is None

    path.write_text("{not json", encoding="utf-8")
    assert store.get_item(TOKEN_KEY) is None
