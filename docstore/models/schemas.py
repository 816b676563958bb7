# docstore/models/schemas.py
from typing import Any

from pydantic import BaseModel, Field

from docstore.core.filters import Predicate


class Credentials(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class FilterClause(BaseModel):
    # wire names come from the original Portuguese API: field, condition, wanted value
    filtro: str
    condicao: str
    valorprocurado: Any = None

    def to_predicate(self) -> Predicate:
        return Predicate.build(self.filtro, self.condicao, self.valorprocurado)


class FilterRequest(BaseModel):
    filters: list[FilterClause] = Field(default_factory=list)

    def predicates(self) -> list[Predicate]:
        return [clause.to_predicate() for clause in self.filters]
