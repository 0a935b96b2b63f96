"""
In-memory scan example

Walks a MemoryStore keyspace in small batches, then scans the fields
of a single hash.
"""

from kvscan import MemoryStore, scan_options

store = MemoryStore()
for i in range(50):
    store.set(f"session:{i:03d}", f"payload-{i}")
for i in range(5):
    store.set(f"user:{i}", f"name-{i}")
store.hset("config", "region", "eu-south-1")
store.hset("config", "retries", "3")

# Keys arrive lazily, 10 slots per round-trip
options = scan_options().count(10).match("user:*").build()
with store.scan_keys(options) as cursor:
    for key in cursor:
        print(key)
    print(f"Read {cursor.position} keys in {cursor.cursor.pages_fetched} round-trips")

# Member-level scan bound to one key
for field, value in store.hscan_cursor("config"):
    print(field.decode(), "=", value.decode())

# A scan known to be empty costs nothing
print(list(store.scan_cursor(start=None)))
