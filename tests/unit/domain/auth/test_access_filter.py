"""Unit tests for AccessFilter."""

from unittest.mock import AsyncMock

import pytest

from shelfgate.domain.auth.service.access import AccessFilter, is_effective_admin
from shelfgate.domain.shared.error import StorageUnavailableError


def make_access_filter(licensed: set[int] | None = None) -> tuple[AccessFilter, AsyncMock]:
    """Create an AccessFilter whose license store returns `licensed`."""
    repo = AsyncMock()
    repo.licensed_book_ids.return_value = licensed if licensed is not None else set()
    return AccessFilter(_book_license_repo=repo), repo


class TestIsEffectiveAdmin:
    def test_single_idp_admin_claim(self):
        assert is_effective_admin(True, ["uni1"]) is True

    def test_multiple_idps_never_admin(self):
        assert is_effective_admin(True, ["uni1", "uni2"]) is False

    def test_no_idps_never_admin(self):
        assert is_effective_admin(True, []) is False

    def test_no_claim(self):
        assert is_effective_admin(False, ["uni1"]) is False


class TestComputeAccessibleBooks:
    @pytest.mark.asyncio
    async def test_non_admin_gets_claimed_intersect_licensed(self):
        access_filter, repo = make_access_filter(licensed={1, 2})

        result = await access_filter.compute_accessible_books([1, 2, 3], ["uni1"], False)

        assert result == frozenset({1, 2})
        repo.licensed_book_ids.assert_awaited_once_with(["uni1"], [1, 2, 3])

    @pytest.mark.asyncio
    async def test_result_is_subset_of_claimed(self):
        """A store returning extra books never widens a non-admin's access."""
        access_filter, _ = make_access_filter(licensed={1, 2, 5, 9})

        result = await access_filter.compute_accessible_books([2, 9, 11], ["uni1"], False)

        assert result <= {2, 9, 11}
        assert result == frozenset({2, 9})

    @pytest.mark.asyncio
    async def test_admin_gets_every_licensed_book(self):
        access_filter, repo = make_access_filter(licensed={1, 2, 5})

        result = await access_filter.compute_accessible_books([], ["uni1"], True)

        assert result == frozenset({1, 2, 5})
        # Claimed set is not used as a restriction for admins
        repo.licensed_book_ids.assert_awaited_once_with(["uni1"], None)

    @pytest.mark.asyncio
    async def test_admin_over_two_idps_is_filtered_like_a_reader(self):
        access_filter, repo = make_access_filter(licensed={1})

        result = await access_filter.compute_accessible_books([1, 7], ["uni1", "uni2"], True)

        assert result == frozenset({1})
        repo.licensed_book_ids.assert_awaited_once_with(["uni1", "uni2"], [1, 7])

    @pytest.mark.asyncio
    async def test_empty_claims(self):
        access_filter, _ = make_access_filter(licensed=set())

        result = await access_filter.compute_accessible_books([], ["uni1"], False)

        assert result == frozenset()

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self):
        access_filter, repo = make_access_filter()
        repo.licensed_book_ids.side_effect = StorageUnavailableError("down")

        with pytest.raises(StorageUnavailableError):
            await access_filter.compute_accessible_books([1], ["uni1"], False)
