"""User setup document served to the reader clients."""

from typing import Any

from dishka import FromDishka
from dishka.integrations.fastapi import DishkaRoute
from fastapi import APIRouter

from shelfgate.domain.auth.model.profile import SessionProfile

router = APIRouter(tags=["User"], route_class=DishkaRoute)


@router.get("/usersetup.json")
async def user_setup(profile: FromDishka[SessionProfile]) -> dict[str, Any]:
    """The caller's session profile, as admitted by the request gate."""
    return profile.to_session()
