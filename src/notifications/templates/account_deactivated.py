"""Account deactivated template."""

from html import escape

from notifications.kinds import NotificationKind


class AccountDeactivatedTemplate:
    kind = NotificationKind.ACCOUNT_DEACTIVATED.value
    is_html = True

    @staticmethod
    def render(context: dict) -> dict:
        name = escape(context.get("customer_name") or "there")
        return {
            "subject": "Account Deactivated",
            "body": (
                "<html><body>"
                f"<p>Hi {name},</p>"
                "<p>Your account has been deactivated. "
                "If this was a mistake, please contact support.</p>"
                "</body></html>"
            ),
        }
