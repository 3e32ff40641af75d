#!/usr/bin/env python3
"""
Demo Data Generator Script for the Team Service Request Tracker

This script populates the MongoDB database with demonstration requests
spread over a few teams, for testing and presentation purposes.
"""

import asyncio
import sys
import random
from pathlib import Path

# Add parent directory to path so we can import from the main application
sys.path.append(str(Path(__file__).parent.parent))

# Import database related modules
from database.db import init_db, close_db
from database.operations import create_request, update_request

# Import models
from models.request import RequestStatus

# Configuration
NUM_REQUESTS_PER_TEAM = 4
DONE_RATIO = 0.3

# Static team -> SPOC table, mirroring what the frontend ships with
TEAMS = [
    {"id": "team-1", "name": "Platform", "spocId": "spoc-anita"},
    {"id": "team-2", "name": "Payments", "spocId": "spoc-ravi"},
    {"id": "team-3", "name": "Design", "spocId": "spoc-meera"},
]

REQUESTERS = ["Al", "Priya", "Karthik", "Sana", "Rohit", "Divya", "Joseph", "Neha"]

CATEGORIES = {
    "Tea": ["Less sugar", "Green tea", "Masala chai", ""],
    "Coffee": ["Black, no sugar", "Cappuccino", "Filter coffee", ""],
    "WiFi": ["Guest network down", "Slow in meeting room", "Need guest credentials"],
    "Other": ["Projector not working", "Whiteboard markers", "Extra chairs"],
}

LOCATIONS = ["3F-212", "3F-Cafe", "2F-Board Room", "4F-Huddle 2", "Ground Reception", "5F-417"]

async def create_demo_requests():
    """Create demo requests for every team, marking some of them done."""
    requests = []

    print("Creating service requests...")

    for team in TEAMS:
        for i in range(NUM_REQUESTS_PER_TEAM):
            category = random.choice(list(CATEGORIES))

            request_data = {
                "requester": random.choice(REQUESTERS),
                "category": category,
                "details": random.choice(CATEGORIES[category]),
                "location": random.choice(LOCATIONS),
                "quantity": str(random.randint(1, 4)) if category in ("Tea", "Coffee") else "",
                "teamId": team["id"],
                "spocId": team["spocId"],
            }

            created = await create_request(request_data)
            if random.random() < DONE_RATIO:
                created = await update_request(created["id"], {"status": RequestStatus.DONE.value})
            requests.append(created)
            print(f"  Created {category} request at {request_data['location']} for {team['name']} ({created['status']})")

    return requests

async def main():
    """Main function to create all demo data."""
    print("Initializing database connection...")
    await init_db()

    print("\n=== TEAM SERVICE REQUEST DEMO DATA GENERATOR ===\n")

    try:
        requests = await create_demo_requests()
    finally:
        await close_db()

    print("\n=== DEMO DATA GENERATION COMPLETE ===\n")
    print(f"Created {len(requests)} requests across {len(TEAMS)} teams")

    print("\nDemo SPOC ids (use as the unlock PIN):")
    for team in TEAMS:
        print(f"  {team['name']}: {team['spocId']}")

if __name__ == "__main__":
    asyncio.run(main())
