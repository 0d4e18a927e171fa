from support import ApiTestCase, headers


class NotificationApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.make_backend_role()
        self.student = self.make_user()

    def _unread(self, user=None):
        response = self.client.get("/v1/notifications/unread-count", headers=headers(user or self.student))
        self.assertEqual(response.status_code, 200)
        return response.json()["unread_count"]

    def test_requires_identity(self):
        self.assertEqual(self.client.get("/v1/notifications").status_code, 401)
        self.assertEqual(self.client.get("/v1/notifications", headers={"X-User-Id": "ghost"}).status_code, 401)

    def test_role_change_creates_one_notification_per_type(self):
        self.select_role(self.student, self.role)
        self.add_skill(self.student, self.python, "advanced")
        self.add_skill(self.student, self.sql, "intermediate")

        body = self.client.get("/v1/notifications", headers=headers(self.student)).json()
        self.assertEqual(body["unread_count"], 2)
        by_type = {item["type"]: item for item in body["notifications"]}
        self.assertEqual(set(by_type), {"readiness_outdated", "role_changed"})
        self.assertEqual(by_type["role_changed"]["title"], "Target Role Updated")
        self.assertEqual(by_type["readiness_outdated"]["title"], "Readiness Score Outdated")
        self.assertEqual(by_type["readiness_outdated"]["action_url"], "/dashboard/readiness")

    def test_calculating_readiness_clears_outdated_notice(self):
        self.select_role(self.student, self.role)
        self.add_skill(self.student, self.python, "advanced")
        self.assertEqual(self._unread(), 2)

        response = self.client.post(f"/v1/users/{self.student['id']}/readiness", headers=headers(self.student))
        self.assertEqual(response.status_code, 201, response.text)
        self.assertEqual(self._unread(), 1)

        unread = self.client.get("/v1/notifications?unread_only=true", headers=headers(self.student)).json()
        self.assertEqual([item["type"] for item in unread["notifications"]], ["role_changed"])

    def test_mark_read_by_id_and_all(self):
        self.select_role(self.student, self.role)
        notifications = self.client.get("/v1/notifications", headers=headers(self.student)).json()["notifications"]
        first = notifications[0]

        response = self.client.post(
            "/v1/notifications/read",
            json={"notification_ids": [first["id"]]},
            headers=headers(self.student),
        )
        self.assertEqual(response.json(), {"updated": 1})
        self.assertEqual(self._unread(), 1)

        response = self.client.post("/v1/notifications/read", headers=headers(self.student))
        self.assertEqual(response.json(), {"updated": 1})
        self.assertEqual(self._unread(), 0)

        read = self.client.get("/v1/notifications", headers=headers(self.student)).json()["notifications"]
        self.assertTrue(all(item["is_read"] and item["read_at"] for item in read))

    def test_cannot_mark_another_users_notifications(self):
        self.select_role(self.student, self.role)
        other = self.make_user(name="Oli Other", email="oli@example.com")
        ids = [item["id"] for item in self.client.get("/v1/notifications", headers=headers(self.student)).json()["notifications"]]

        response = self.client.post("/v1/notifications/read", json={"notification_ids": ids}, headers=headers(other))
        self.assertEqual(response.json(), {"updated": 0})
        self.assertEqual(self._unread(), 2)

    def test_new_notice_after_read_creates_fresh_row(self):
        self.select_role(self.student, self.role)
        self.client.post("/v1/notifications/read", headers=headers(self.student))
        self.add_skill(self.student, self.docker)

        body = self.client.get("/v1/notifications", headers=headers(self.student)).json()
        self.assertEqual(body["unread_count"], 1)
        self.assertEqual(len(body["notifications"]), 3)


class TicketApiTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.student = self.make_user()

    def _create(self, user=None, **overrides):
        payload = {"subject": "Cannot upload resume", "description": "The PDF upload fails.", "category": "bug"}
        payload.update(overrides)
        response = self.client.post("/v1/tickets", json=payload, headers=headers(user or self.student))
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def test_create_ticket_assigns_sequential_numbers(self):
        first = self._create()
        self.assertEqual(first["ticket_number"], "RR-1000")
        self.assertEqual(first["status"], "open")
        self.assertEqual(first["priority"], "medium")
        self.assertEqual(first["creator_role"], "user")
        self.assertEqual(len(first["messages"]), 1)
        self.assertEqual(first["messages"][0]["body"], "The PDF upload fails.")

        second = self._create(subject="Billing question", category="payment", priority="high")
        self.assertEqual(second["ticket_number"], "RR-1001")

    def test_create_validation(self):
        response = self.client.post(
            "/v1/tickets",
            json={"subject": "   ", "description": "Something"},
            headers=headers(self.student),
        )
        self.assertEqual(response.status_code, 422)
        response = self.client.post(
            "/v1/tickets",
            json={"subject": "Help", "description": "Something", "category": "spam"},
            headers=headers(self.student),
        )
        self.assertEqual(response.status_code, 422)

    def test_list_and_get_own_tickets(self):
        ticket = self._create()
        self._create(subject="Second issue")
        other = self.make_user(name="Oli Other", email="oli@example.com")
        self._create(user=other, subject="Other issue")

        mine = self.client.get("/v1/tickets", headers=headers(self.student)).json()
        self.assertEqual([item["subject"] for item in mine], ["Second issue", "Cannot upload resume"])

        self.assertEqual(self.client.get("/v1/tickets?status=closed", headers=headers(self.student)).json(), [])

        response = self.client.get(f"/v1/tickets/{ticket['id']}", headers=headers(self.student))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get(f"/v1/tickets/{ticket['id']}", headers=headers(other)).status_code, 403)
        self.assertEqual(self.client.get(f"/v1/tickets/{ticket['id']}", headers=headers(self.admin)).status_code, 200)
        self.assertEqual(self.client.get("/v1/tickets/missing", headers=headers(self.student)).status_code, 404)

    def test_admin_reply_moves_open_ticket_in_progress(self):
        ticket = self._create()
        response = self.client.post(
            f"/v1/tickets/{ticket['id']}/messages",
            json={"body": "Looking into it."},
            headers=headers(self.admin),
        )
        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        self.assertEqual(body["status"], "in_progress")
        self.assertEqual([message["sender_role"] for message in body["messages"]], ["user", "admin"])

    def test_user_reply_resumes_waiting_ticket(self):
        ticket = self._create()
        self.client.patch(
            f"/v1/admin/tickets/{ticket['id']}",
            json={"status": "waiting_user"},
            headers=headers(self.admin),
        )
        response = self.client.post(
            f"/v1/tickets/{ticket['id']}/messages",
            json={"body": "Here are the details."},
            headers=headers(self.student),
        )
        self.assertEqual(response.json()["status"], "in_progress")

    def test_cannot_reply_to_closed_or_foreign_ticket(self):
        ticket = self._create()
        other = self.make_user(name="Oli Other", email="oli@example.com")
        response = self.client.post(
            f"/v1/tickets/{ticket['id']}/messages",
            json={"body": "Me too"},
            headers=headers(other),
        )
        self.assertEqual(response.status_code, 403)

        self.client.patch(f"/v1/admin/tickets/{ticket['id']}", json={"status": "closed"}, headers=headers(self.admin))
        response = self.client.post(
            f"/v1/tickets/{ticket['id']}/messages",
            json={"body": "Any update?"},
            headers=headers(self.student),
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Cannot reply to a closed ticket")

    def test_admin_update_status_and_resolution(self):
        ticket = self._create()
        url = f"/v1/admin/tickets/{ticket['id']}"

        resolved = self.client.patch(url, json={"status": "resolved"}, headers=headers(self.admin)).json()
        self.assertEqual(resolved["status"], "resolved")
        self.assertIsNotNone(resolved["resolved_at"])

        reopened = self.client.patch(url, json={"status": "open"}, headers=headers(self.admin)).json()
        self.assertIsNone(reopened["resolved_at"])

        updated = self.client.patch(
            url,
            json={"priority": "high", "assigned_to": self.admin["id"]},
            headers=headers(self.admin),
        ).json()
        self.assertEqual(updated["priority"], "high")
        self.assertEqual(updated["assigned_to"], self.admin["id"])

    def test_admin_update_validation(self):
        ticket = self._create()
        url = f"/v1/admin/tickets/{ticket['id']}"
        self.assertEqual(self.client.patch(url, json={}, headers=headers(self.admin)).status_code, 422)

        response = self.client.patch(url, json={"assigned_to": self.student["id"]}, headers=headers(self.admin))
        self.assertEqual(response.status_code, 400)

        response = self.client.patch(url, json={"status": "resolved"}, headers=headers(self.student))
        self.assertEqual(response.status_code, 403)

        missing = self.client.patch("/v1/admin/tickets/missing", json={"status": "closed"}, headers=headers(self.admin))
        self.assertEqual(missing.status_code, 404)

    def test_admin_list_filters(self):
        self._create(priority="high")
        self._create(subject="Feature idea", category="feature", priority="low")
        self._create(subject="Account locked", category="account")

        everything = self.client.get("/v1/admin/tickets", headers=headers(self.admin)).json()
        self.assertEqual([item["ticket_number"] for item in everything], ["RR-1002", "RR-1001", "RR-1000"])

        bugs = self.client.get("/v1/admin/tickets?category=bug", headers=headers(self.admin)).json()
        self.assertEqual([item["ticket_number"] for item in bugs], ["RR-1000"])

        low = self.client.get("/v1/admin/tickets?priority=low", headers=headers(self.admin)).json()
        self.assertEqual([item["subject"] for item in low], ["Feature idea"])

        page = self.client.get("/v1/admin/tickets?limit=1&offset=1", headers=headers(self.admin)).json()
        self.assertEqual([item["ticket_number"] for item in page], ["RR-1001"])

        self.assertEqual(self.client.get("/v1/admin/tickets?limit=0", headers=headers(self.admin)).status_code, 422)
        self.assertEqual(self.client.get("/v1/admin/tickets", headers=headers(self.student)).status_code, 403)


class ActivityApiTests(ApiTestCase):
    def test_activity_summary_and_latest(self):
        student = self.make_user()
        self.client.post(
            "/v1/tickets",
            json={"subject": "Help", "description": "Please help"},
            headers=headers(student),
        )

        summary = self.client.get("/v1/admin/activity/summary", headers=headers(self.admin))
        self.assertEqual(summary.status_code, 200)
        body = summary.json()
        self.assertGreaterEqual(body["total"], 1)
        self.assertEqual(body["total"], body["total_7d"])
        self.assertEqual(body["by_action"]["ticket_created"], 1)

        latest = self.client.get("/v1/admin/activity/latest?limit=1", headers=headers(self.admin)).json()
        self.assertEqual(len(latest), 1)
        self.assertEqual(latest[0]["action"], "ticket_created")
        self.assertEqual(latest[0]["details"]["ticket_number"], "RR-1000")

    def test_activity_routes_are_admin_only(self):
        student = self.make_user()
        self.assertEqual(self.client.get("/v1/admin/activity/summary", headers=headers(student)).status_code, 403)
        self.assertEqual(self.client.get("/v1/admin/activity/latest", headers=headers(student)).status_code, 403)
