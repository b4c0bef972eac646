from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel


class Command(BaseModel, ABC): ...


class Result(BaseModel, ABC): ...


C = TypeVar("C", bound=Command)
R = TypeVar("R", bound=Result)


class CommandHandler(Generic[C, R], ABC):
    @abstractmethod
    async def run(self, cmd: C) -> R: ...
