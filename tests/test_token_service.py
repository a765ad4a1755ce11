import pytest
from sqlalchemy import delete

from conftest import TEST_AUTH
from vidshare.models.user import User
from vidshare.services.token_service import TokenService
from vidshare.services.user_service import UserService
from vidshare.utils.errors import ApiError
from vidshare.utils.security import create_access_token, create_refresh_token, decode_refresh_token


@pytest.fixture
async def user(db):
    user = await UserService(db, bcrypt_rounds=4).create(
        username="alice",
        email="alice@example.com",
        full_name="Alice Example",
        password="secret123",
        avatar="https://res.cloudinary.com/demo/image/upload/v1/avatars/a.png",
    )
    await db.commit()
    return user


@pytest.fixture
def tokens(db):
    return TokenService(db, TEST_AUTH)


async def test_issue_persists_refresh_token(db, user, tokens):
    pair = await tokens.issue(user)
    await db.commit()

    stored = await UserService(db).get_by_id(user.id, include_secrets=True)
    assert stored.refresh_token == pair.refresh_token
    assert decode_refresh_token(pair.refresh_token, TEST_AUTH)["sub"] == str(user.id)


async def test_rotate_returns_fresh_pair(db, user, tokens):
    first = await tokens.issue(user)

    second = await tokens.rotate(first.refresh_token)

    assert second.refresh_token != first.refresh_token
    assert second.access_token != first.access_token
    stored = await UserService(db).get_by_id(user.id, include_secrets=True)
    assert stored.refresh_token == second.refresh_token


async def test_rotated_token_cannot_be_reused(user, tokens):
    first = await tokens.issue(user)
    await tokens.rotate(first.refresh_token)

    with pytest.raises(ApiError) as exc:
        await tokens.rotate(first.refresh_token)

    assert exc.value.status_code == 401
    assert exc.value.message == "Refresh token is expired or used"


async def test_unissued_token_is_rejected(user, tokens):
    # Validly signed, but never recorded on the user
    stray = create_refresh_token(user.id, TEST_AUTH)

    with pytest.raises(ApiError) as exc:
        await tokens.rotate(stray)

    assert exc.value.status_code == 401


@pytest.mark.parametrize("presented", [None, ""])
async def test_missing_token(tokens, presented):
    with pytest.raises(ApiError) as exc:
        await tokens.rotate(presented)

    assert exc.value.status_code == 401
    assert exc.value.message == "Unauthorized request"


async def test_garbage_token(tokens):
    with pytest.raises(ApiError) as exc:
        await tokens.rotate("not.a.jwt")

    assert exc.value.status_code == 401
    assert exc.value.message == "Invalid refresh token"


async def test_access_token_is_not_a_refresh_token(user, tokens):
    await tokens.issue(user)
    access = create_access_token(user.id, user.username, user.email, user.full_name, TEST_AUTH)

    with pytest.raises(ApiError) as exc:
        await tokens.rotate(access)

    assert exc.value.message == "Invalid refresh token"


async def test_token_for_deleted_user(db, user, tokens):
    pair = await tokens.issue(user)
    await db.commit()
    await db.execute(delete(User).where(User.id == user.id))
    await db.commit()

    with pytest.raises(ApiError) as exc:
        await tokens.rotate(pair.refresh_token)

    assert exc.value.status_code == 401
