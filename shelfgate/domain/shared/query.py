from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from pydantic import BaseModel


class Query(BaseModel, ABC): ...


class Result(BaseModel, ABC): ...


Q = TypeVar("Q", bound=Query)
R = TypeVar("R", bound=Result)


class QueryHandler(Generic[Q, R], ABC):
    @abstractmethod
    async def run(self, query: Q) -> R: ...
