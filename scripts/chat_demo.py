"""Demo script: open a guest session, ask two questions and book a lawyer."""
from __future__ import annotations

import json
from datetime import date, timedelta

import httpx

API_URL = "http://localhost:8000"


def _post(client: httpx.Client, path: str, payload: dict | None = None) -> dict:
    response = client.post(f"{API_URL}{path}", json=payload)
    response.raise_for_status()
    return response.json()


def main() -> None:
    with httpx.Client(timeout=30) as client:
        guest = _post(client, "/guest")
        print("Signed in as", guest["user"]["name"])

        print("--- First question (EN) ---")
        first = _post(client, "/chat", {"message": "What are my rights as a tenant?"})
        print(first["response"])
        conversation_id = first["conversationId"]

        print("\n--- Follow-up (AR) ---")
        follow_up = _post(client, "/chat", {"message": "ما هي حقوقي في العقد؟", "conversationId": conversation_id})
        print(follow_up["response"])

        print("\n--- Booking ---")
        booking = _post(
            client,
            "/booking",
            {
                "lawyerId": 5,
                "clientName": "Demo Guest",
                "clientEmail": "demo@example.com",
                "clientPhone": "+20 100 000 0000",
                "appointmentDate": (date.today() + timedelta(days=7)).isoformat(),
                "appointmentTime": "11:00",
                "caseDescription": "Lease renewal dispute",
            },
        )
        print(json.dumps(booking["booking"], ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
