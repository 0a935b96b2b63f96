"""
FastAPI Integration Example

Demonstrates handing scan tokens to a frontend so it can page through a
DynamoDB table one request at a time.
"""

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel

from kvscan import START, DynamoScanStore, InvalidCursorError, ScanOptions


class User(BaseModel):
    email: str
    name: str
    age: int


class UserPage(BaseModel):
    """Response model for one page of users"""

    items: list[User]
    next_token: str | None


store = DynamoScanStore("Users", key_name="email")
app = FastAPI(title="kvscan + FastAPI Example")


@app.get("/users", response_model=UserPage)
def list_users(limit: int = 20, token: str | None = None, prefix: str | None = None) -> UserPage:
    """List users, one DynamoDB page per request"""
    options = ScanOptions(count=limit, match=f"{prefix}*" if prefix else None)
    try:
        batch = store.scan(token or START, options)
    except InvalidCursorError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e

    return UserPage(
        items=[User.model_validate(item) for item in batch.items],
        next_token=batch.token if batch.has_more else None,
    )


# Run with: uvicorn main:app --reload
# Visit: http://localhost:8000/docs
