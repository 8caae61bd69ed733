import sys
import os
import random

# Add the project root directory to Python path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from meetup.database import create_db_and_tables, engine
from meetup.errors import Conflict
from meetup.services.notification import NotificationService
from meetup.services.relationships import FriendRelationshipStore

# Ids as handed out by the identity provider
test_users = [
    "8f1c2a34-john-doe",
    "1b7e9d20-jane-smith",
    "c43a5f11-bob-wilson",
    "7d2e8b90-alice-jones",
    "e5f60c72-charlie-brown",
    "0a9b3c48-emma-davis",
    "96d4e1f5-david-miller",
    "3e8a7f02-sophia-wilson",
]

def create_friend_requests(store: FriendRelationshipStore, count: int = 15):
    created = []
    for _ in range(count):
        requester, target = random.sample(test_users, 2)
        try:
            created.append(store.send_request(requester, target))
        except Conflict:
            # The pair is already linked one way or the other
            continue
    return created

def settle_requests(store: FriendRelationshipStore, requests):
    accepted = declined = 0
    for request in requests:
        outcome = random.choice(["accept", "decline", "pending"])
        if outcome == "accept":
            store.accept_request(request.target_id, request.requester_id)
            accepted += 1
        elif outcome == "decline":
            store.decline_request(request.target_id, request.requester_id)
            declined += 1
    return accepted, declined

def main():
    create_db_and_tables()
    store = FriendRelationshipStore(engine, NotificationService(engine))

    requests = create_friend_requests(store)
    print(f"Created {len(requests)} friend requests")

    accepted, declined = settle_requests(store, requests)
    print(f"Accepted {accepted}, declined {declined}, left {len(requests) - accepted - declined} pending")

if __name__ == "__main__":
    main()
