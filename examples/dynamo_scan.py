"""
DynamoDB scan example

Scans a "Users" table page by page and validates every item into a
Pydantic model as it is pulled.
"""

from pydantic import BaseModel

from kvscan import ConversionFailureError, DynamoScanStore, scan_options


class User(BaseModel):
    email: str
    name: str
    age: int


store = DynamoScanStore("Users", key_name="email", region="us-east-1")

# Only users whose email starts with "admin" (sent as a begins_with filter)
options = scan_options().count(25).match("admin*").build()

with store.model_cursor(User, options) as cursor:
    while cursor.has_next():
        try:
            user = cursor.next()
        except ConversionFailureError as e:
            print(f"Skipping malformed item: {e.item}")
            continue
        print(user.email, user.age)
