from typing import Annotated

from fastapi import Depends, Request

from guarded_api.repos.user import UserStore
from guarded_api.services.identity import Identity, get_request_identity
from guarded_api.services.pipeline import Pipeline
from guarded_api.services.token_authenticator import TokenAuthenticator


def get_pipeline(request: Request) -> Pipeline:
    """Pipeline built by `create_app` for the running application"""
    return request.app.state.pipeline


def get_user_store(pipeline: Annotated[Pipeline, Depends(get_pipeline)]) -> UserStore:
    return pipeline.user_store


def get_authenticator(
    pipeline: Annotated[Pipeline, Depends(get_pipeline)],
) -> TokenAuthenticator:
    return pipeline.authenticator


def get_identity(request: Request) -> Identity:
    return get_request_identity(request)


UserStoreDep = Annotated[UserStore, Depends(get_user_store)]
AuthenticatorDep = Annotated[TokenAuthenticator, Depends(get_authenticator)]
IdentityDep = Annotated[Identity, Depends(get_identity)]
