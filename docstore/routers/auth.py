from fastapi import APIRouter, Depends, Request

from docstore.core.security import create_access_token
from docstore.models.schemas import Credentials
from docstore.models.user import UserStore

router = APIRouter(tags=["auth"])


# user store dependency
def get_users(request: Request) -> UserStore:
    return request.app.state.users


@router.post("/register", status_code=201)
async def register(credentials: Credentials, users: UserStore = Depends(get_users)):
    await users.register(credentials.username, credentials.password)
    return {"message": "User registered successfully"}


@router.post("/login")
async def login(request: Request, credentials: Credentials, users: UserStore = Depends(get_users)):
    user = await users.authenticate(credentials.username, credentials.password)

    # login success → hand out a signed token
    token = create_access_token(user["username"], request.app.state.settings)
    return {"accessToken": token}
