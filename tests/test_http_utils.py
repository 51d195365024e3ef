from http import HTTPStatus
import pytest
from moviehub_api.api.http_utils import (
    handle_runtime_errors, not_found_if_none)
from moviehub_api.core.errors import MovieNotFound, StorageUnavailable
from fastapi import HTTPException


def test_not_found_if_none_raises_404_with_detail():
    with pytest.raises(HTTPException) as e:
        not_found_if_none(None, detail="x")
    assert e.value.status_code == HTTPStatus.NOT_FOUND
    assert e.value.detail == "x"


def test_not_found_if_none_passes_value_through():
    assert not_found_if_none(0) == 0


async def test_handle_runtime_errors_maps_known_code():
    @handle_runtime_errors(
        {"movie_not_found": (HTTPStatus.NOT_FOUND, "Movie not found")})
    async def fn():
        raise MovieNotFound()
    with pytest.raises(HTTPException) as e:
        await fn()
    assert e.value.status_code == HTTPStatus.NOT_FOUND
    assert e.value.detail == "Movie not found"


async def test_handle_runtime_errors_hides_storage_details():
    @handle_runtime_errors(
        {"movie_not_found": (HTTPStatus.NOT_FOUND, "Movie not found")})
    async def fn():
        raise StorageUnavailable("mongo_vote_error: connection refused")
    with pytest.raises(HTTPException) as e:
        await fn()
    assert e.value.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert e.value.detail == "Server error"


async def test_handle_runtime_errors_happy_path_returns_value():
    @handle_runtime_errors({})
    async def ok():
        return "ok"
    assert await ok() == "ok"
