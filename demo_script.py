#!/usr/bin/env python3
"""
Demo script walking through the observation verification workflow
against a running server.
"""
import requests

BASE_URL = "http://localhost:8000/api"


class SafeWatchDemo:
    def __init__(self):
        self.admin_token = None

    @staticmethod
    def _headers(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    def login(self, employee_id: str, password: str) -> str:
        """Login and return access token"""
        response = requests.post(f"{BASE_URL}/auth/login", json={
            "employee_id": employee_id,
            "password": password
        })

        if response.status_code == 200:
            return response.json()["access_token"]
        print(f"Login failed: {response.text}")
        return None

    def register_and_approve(self, employee_id: str, name: str, password: str, role: str = None):
        """Self-register a user, then approve (and optionally promote) them as admin"""
        response = requests.post(f"{BASE_URL}/auth/register", json={
            "employee_id": employee_id,
            "name": name,
            "password": password
        })
        if response.status_code != 200:
            print(f"✗ Failed to register {name}: {response.text}")
            return None
        user = response.json()["user"]

        response = requests.put(
            f"{BASE_URL}/admin/users/{user['id']}/approve",
            headers=self._headers(self.admin_token)
        )
        if response.status_code != 200:
            print(f"✗ Failed to approve {name}: {response.text}")
            return None

        if role:
            response = requests.put(
                f"{BASE_URL}/users/{user['id']}/role",
                headers=self._headers(self.admin_token),
                json={"role": role}
            )
            if response.status_code != 200:
                print(f"✗ Failed to set role for {name}: {response.text}")
                return None

        print(f"✓ Registered and approved: {name} ({role or 'user'})")
        return user

    def create_observation(self, token: str, description: str):
        response = requests.post(f"{BASE_URL}/observations",
            headers=self._headers(token),
            json={
                "area": "Fabrication Yard",
                "observation_type": "Unsafe Condition",
                "risk_level": "High",
                "description": description,
                "corrective_action": "Install barricade around the open edge"
            }
        )
        if response.status_code == 200:
            observation = response.json()
            print(f"✓ Observation {observation['id']} reported ({observation['status']})")
            return observation
        print(f"✗ Failed to create observation: {response.text}")
        return None

    def complete_corrective_action(self, token: str, observation_id: int):
        response = requests.put(f"{BASE_URL}/observations/{observation_id}/corrective-action",
            headers=self._headers(token),
            json={"status": "Completed"}
        )
        if response.status_code == 200:
            print(f"✓ Corrective action marked Completed for observation {observation_id}")
            return response.json()
        print(f"✗ Failed to update corrective action: {response.text}")
        return None

    def verify(self, token: str, observation_id: int, decision: str, remarks: str):
        """decision is 'approve' or 'reject'"""
        response = requests.post(f"{BASE_URL}/verifications/{observation_id}/{decision}",
            headers=self._headers(token),
            json={"remarks": remarks}
        )
        if response.status_code == 200:
            print(f"✓ {response.json()['message']}")
            return response.json()
        print(f"✗ Failed to {decision} observation {observation_id}: {response.text}")
        return None

    def run_demo(self):
        """Run complete demo scenario"""
        print("=== SafeWatch Verification Workflow Demo ===\n")

        print("1. Admin Login")
        admin_employee_id = input("Admin employee ID: ").strip()
        admin_password = input("Admin password: ").strip()
        self.admin_token = self.login(admin_employee_id, admin_password)
        if not self.admin_token:
            print("Demo failed: Could not login as admin")
            return
        print("✓ Admin logged in successfully\n")

        print("2. Registering Demo Users")
        reporter = self.register_and_approve("DEMO-100", "Sam Reporter", "demo123")
        officer = self.register_and_approve("DEMO-200", "Alex Officer", "demo123", "safety_officer")
        if not reporter or not officer:
            print("Demo failed: Could not create users")
            return
        reporter_token = self.login("DEMO-100", "demo123")
        officer_token = self.login("DEMO-200", "demo123")
        if not reporter_token or not officer_token:
            print("Demo failed: Could not login as demo users")
            return
        print()

        print("3. Reporting Observations")
        first = self.create_observation(reporter_token, "Open edge without barricade near the pipe rack")
        second = self.create_observation(reporter_token, "Grinder used without face shield")
        if not first or not second:
            print("Demo failed: Could not create observations")
            return
        print()

        print("4. Completing Corrective Actions")
        self.complete_corrective_action(reporter_token, first["id"])
        self.complete_corrective_action(reporter_token, second["id"])
        response = requests.get(f"{BASE_URL}/verifications/pending/count",
            headers=self._headers(officer_token))
        if response.status_code == 200:
            print(f"  Pending verifications: {response.json()['count']}")
        print()

        print("5. Verifying")
        self.verify(officer_token, first["id"], "approve", "Barricade installed and inspected")
        self.verify(officer_token, second["id"], "reject", "Face shield not visible in evidence photo")
        print()

        print("6. Verification History and Status Log")
        for observation in (first, second):
            response = requests.get(f"{BASE_URL}/verifications/history/{observation['id']}",
                headers=self._headers(officer_token))
            if response.status_code == 200:
                for entry in response.json():
                    print(f"  - #{observation['id']} {entry['status']} by {entry['verifier_name']}: {entry['remarks']}")
            response = requests.get(f"{BASE_URL}/status-log/observation/{observation['id']}",
                headers=self._headers(officer_token))
            if response.status_code == 200:
                for entry in response.json():
                    print(f"    {entry['previous_status']} -> {entry['new_status']}")
        print()

        print("7. Reporter Points")
        response = requests.get(f"{BASE_URL}/auth/me", headers=self._headers(reporter_token))
        if response.status_code == 200:
            me = response.json()
            print(f"  {me['name']}: {me['points']} points ({me['level']})")
        print()

        print("=== Demo Completed Successfully! ===")


if __name__ == "__main__":
    demo = SafeWatchDemo()
    demo.run_demo()
