"""
Request validation dependencies for FastAPI routes.
Why: one error contract for body, path params and query across the API.

Each factory takes a pydantic model and returns a dependency that hands the
validated model to the route. Failures are logged with request context and
answered with 400 ``{"error": "Validation error", "details": [...]}`` once
:func:`install_validation_handler` is applied to the app.

Query keys that repeat become lists. A key sent once stays a string unless
the model declares the field as a sequence (``List[str]``, ``Optional[Set[int]]``
and the like), in which case it is always passed as a list.
"""

import collections.abc
import json
import types
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Set,
    Type,
    TypeVar,
    Union,
    get_args,
    get_origin,
)

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from .logging import get_logger
from .schemas import ValidationErrorBody, ValidationErrorDetail

_LOG = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)
Dependency = Callable[[Request], Awaitable[BaseModel]]


class RequestValidationFailed(Exception):
    def __init__(self, details: List[ValidationErrorDetail]) -> None:
        super().__init__(", ".join(d.message for d in details))
        self.details = details

    def to_body(self) -> Dict[str, Any]:
        return ValidationErrorBody(details=self.details).model_dump()


def format_errors(exc: ValidationError) -> List[ValidationErrorDetail]:
    return [
        ValidationErrorDetail(
            field=".".join(str(part) for part in err["loc"]),
            message=err["msg"],
        )
        for err in exc.errors()
    ]


def _check(
    model: Type[M], data: Any, label: str, context: Dict[str, Any]
) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        details = format_errors(exc)
        message = ", ".join(d.message for d in details)
        _LOG.warning(f"{label} error: {message}", extra={"context": context})
        raise RequestValidationFailed(details) from exc


async def _read_json(request: Request) -> Optional[Any]:
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        # malformed JSON is reported by the model as a type error on the body
        return None


_SEQUENCE_TYPES = (
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.Set,
)


def _is_sequence(annotation: Any) -> bool:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        return any(_is_sequence(arg) for arg in args)
    return (origin or annotation) in _SEQUENCE_TYPES


def _sequence_fields(model: Type[BaseModel]) -> Set[str]:
    names: Set[str] = set()
    for name, field in model.model_fields.items():
        if _is_sequence(field.annotation):
            names.add(name)
            if field.alias:
                names.add(field.alias)
    return names


def _query_dict(request: Request, model: Type[BaseModel]) -> Dict[str, Any]:
    as_list = _sequence_fields(model)
    query: Dict[str, Any] = {}
    for key in request.query_params.keys():
        values = request.query_params.getlist(key)
        query[key] = values if key in as_list or len(values) > 1 else values[0]
    return query


def _base_context(request: Request) -> Dict[str, Any]:
    context: Dict[str, Any] = {"path": request.url.path, "method": request.method}
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        context["request_id"] = request_id
    return context


def validate_body(model: Type[M]) -> Dependency:
    async def dependency(request: Request) -> BaseModel:
        body = await _read_json(request)
        context = {**_base_context(request), "body": body}
        return _check(model, body, "Validation", context)

    return dependency


def validate_params(model: Type[M]) -> Dependency:
    async def dependency(request: Request) -> BaseModel:
        params = dict(request.path_params)
        context = {**_base_context(request), "params": params}
        return _check(model, params, "Params validation", context)

    return dependency


def validate_query(model: Type[M]) -> Dependency:
    async def dependency(request: Request) -> BaseModel:
        query = _query_dict(request, model)
        context = {**_base_context(request), "query": query}
        return _check(model, query, "Query validation", context)

    return dependency


async def _handle_validation_failed(
    request: Request, exc: RequestValidationFailed
) -> JSONResponse:
    return JSONResponse(status_code=400, content=exc.to_body())


def install_validation_handler(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationFailed, _handle_validation_failed)
