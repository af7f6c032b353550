"""
Example script demonstrating how to use the Workflow Assistant.

This script shows how to:
1. Ask an informational question about the caller's orders
2. Ask the assistant to perform a workflow action and read the execution log

The workflow backend must be running and WORKFLOW_CREDENTIAL must hold the
caller's Basic credential (base64 of ``username:password``).
"""

import base64
import json
import os

import requests

BASE_URL = os.getenv("ASSISTANT_URL", "http://localhost:8000")
CREDENTIAL = os.getenv("WORKFLOW_CREDENTIAL") or base64.b64encode(b"supervisor:password").decode()


def ask(question: str) -> dict:
    response = requests.post(
        f"{BASE_URL}/assistant",
        json={"question": question, "credential": CREDENTIAL},
        timeout=120,
    )
    if not response.ok:
        print(f"Request failed ({response.status_code}): {response.json().get('message')}")
        return {}
    return response.json()


def print_result(result: dict) -> None:
    if not result:
        return
    print(f"Answer ({result['model']}): {result['answer']}")
    if result.get("contextWarning"):
        print(f"Context warning: {result['contextWarning']}")
    if result.get("plan"):
        print(f"Plan intent: {result['plan']['intent']}")
    for action in result.get("actions", []):
        line = f"  - {action['name']} [{action['status']}] {action['summary']}"
        if action.get("error"):
            line += f" (error: {action['error']})"
        print(line)
    print()


def run_examples():
    print("Example 1: Informational question...")
    print_result(ask("Which orders are blocked right now?"))

    print("Example 2: Supervisor action...")
    print_result(ask("Bump the priority of the oldest pending order to 5."))

    print("Example 3: Raw response payload...")
    print(json.dumps(ask("Give me a WIP summary."), indent=2))


if __name__ == "__main__":
    print("=" * 60)
    print("Workflow Assistant - Example Usage")
    print("=" * 60)
    print("\nMake sure the server is running: uvicorn workflow_agent.main:app --reload\n")

    try:
        response = requests.get(f"{BASE_URL}/")
        print(f"Server is running: {response.json()}\n")

        run_examples()

        print("=" * 60)
        print("Example completed successfully!")
        print("=" * 60)

    except requests.exceptions.ConnectionError:
        print("ERROR: Could not connect to server.")
        print("Please start the server first:")
        print("  uvicorn workflow_agent.main:app --reload")
