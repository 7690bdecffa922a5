"""Flask blueprints, one per area of the API."""

from . import (
    admin,
    auth,
    contracts,
    disputes,
    hire_now,
    messages,
    notifications,
    payments,
    payouts,
    projects,
    proposals,
    reviews,
    support,
    users,
)

BLUEPRINTS = [
    auth.bp,
    users.bp,
    projects.bp,
    proposals.bp,
    contracts.bp,
    payments.bp,
    payouts.bp,
    reviews.bp,
    disputes.bp,
    notifications.bp,
    messages.bp,
    hire_now.bp,
    support.bp,
    admin.bp,
]
