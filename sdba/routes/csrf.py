from typing import Any, Dict

from fastapi import APIRouter, Request, Response

from sdba.auth.csrf import CSRF_COOKIE_NAME, generate_csrf_token, set_csrf_cookie, verify_csrf_token

router = APIRouter(prefix="/api", tags=["CSRF"])


@router.get("/csrf-token")
async def get_csrf_token(request: Request, response: Response) -> Dict[str, Any]:
    token = request.cookies.get(CSRF_COOKIE_NAME)
    if not verify_csrf_token(token):
        token = generate_csrf_token()
    set_csrf_cookie(response, token)
    return {"ok": True, "token": token}
