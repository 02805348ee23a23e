from fastapi import APIRouter, Response, status

from guarded_api.api.deps import UserStoreDep
from guarded_api.core import responses
from guarded_api.core.exceptions import http_exceptions
from guarded_api.middleware.chain import MiddlewareChain, chained_route
from guarded_api.models.user import User
from guarded_api.schemas import UserCreate, UserResponse

USER_NOT_FOUND = "user not found"


async def list_users(store: UserStoreDep) -> list[User]:
    return store.get_all()


async def create_user(user_in: UserCreate, store: UserStoreDep) -> User:
    return store.create_one(user_in.name, user_in.email)


async def get_user(user_id: int, store: UserStoreDep) -> User:
    user = store.get_by_id(user_id)
    if user is None:
        raise http_exceptions.NotFoundException(detail=USER_NOT_FOUND)

    return user


async def update_user(user_id: int, user_in: UserCreate, store: UserStoreDep) -> User:
    """
    Replace name and email of a user

    Only this route rejects ids below 1 with 400 "invalid user id". Read and
    delete look such ids up like any other and answer 404.
    """
    if user_id <= 0:
        raise http_exceptions.BadRequestException(detail="invalid user id")

    user = store.update_by_id(user_id, user_in.name, user_in.email)
    if user is None:
        raise http_exceptions.NotFoundException(detail=USER_NOT_FOUND)

    return user


async def delete_user(user_id: int, store: UserStoreDep) -> Response:
    if not store.delete_by_id(user_id):
        raise http_exceptions.NotFoundException(detail=USER_NOT_FOUND)

    return Response(status_code=status.HTTP_204_NO_CONTENT)


def build_router(chain: MiddlewareChain) -> APIRouter:
    """
    Users CRUD routes, each running behind `chain`

    Args:
        chain: Per-route chain (body size guard and CSRF guard)

    Returns:
        APIRouter to be included under `/users`
    """
    router = APIRouter(route_class=chained_route(chain), responses=responses.PROTECTED_RESPONSES)
    not_found = {status.HTTP_404_NOT_FOUND: {"model": responses.NotFoundResponse}}

    router.add_api_route(
        "",
        list_users,
        methods=["GET"],
        response_model=list[UserResponse],
        summary="List users",
    )
    router.add_api_route(
        "",
        create_user,
        methods=["POST"],
        response_model=UserResponse,
        status_code=status.HTTP_201_CREATED,
        summary="Create user",
    )
    router.add_api_route(
        "/{user_id}",
        get_user,
        methods=["GET"],
        response_model=UserResponse,
        responses=not_found,
        summary="Read user",
    )
    router.add_api_route(
        "/{user_id}",
        update_user,
        methods=["PUT"],
        response_model=UserResponse,
        responses=not_found,
        summary="Update user",
    )
    router.add_api_route(
        "/{user_id}",
        delete_user,
        methods=["DELETE"],
        status_code=status.HTTP_204_NO_CONTENT,
        response_class=Response,
        responses=not_found,
        summary="Delete user",
    )

    return router
