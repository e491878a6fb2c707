"""
Unit tests for subscription service.

Tests subscribe/unsubscribe edge handling.
"""
import uuid

import pytest

from app.core.errors import BadRequestError, NotFoundError
from app.models import Subscription
from app.services.subscriptions import subscription_service


def _edges(db, subscriber, channel):
    return (
        db.query(Subscription)
        .filter(Subscription.subscriber_id == subscriber.id, Subscription.channel_id == channel.id)
        .count()
    )


class TestSubscribe:

    def test_creates_edge(self, db, make_user):
        fan = make_user("fan")
        channel = make_user("channel")

        subscription = subscription_service.subscribe(fan.id, channel.id, db)

        assert subscription.subscriber_id == fan.id
        assert subscription.channel_id == channel.id
        assert _edges(db, fan, channel) == 1

    def test_repeat_subscribe_adds_another_edge(self, db, make_user):
        fan = make_user("fan")
        channel = make_user("channel")

        subscription_service.subscribe(fan.id, channel.id, db)
        subscription_service.subscribe(fan.id, channel.id, db)

        assert _edges(db, fan, channel) == 2

    def test_cannot_subscribe_to_self(self, db, make_user):
        fan = make_user("fan")

        with pytest.raises(BadRequestError):
            subscription_service.subscribe(fan.id, fan.id, db)
        assert db.query(Subscription).count() == 0

    def test_unknown_channel(self, db, make_user):
        fan = make_user("fan")

        with pytest.raises(NotFoundError):
            subscription_service.subscribe(fan.id, uuid.uuid4(), db)


class TestUnsubscribe:

    def test_removes_all_edges_for_pair(self, db, make_user):
        fan = make_user("fan")
        channel = make_user("channel")
        other = make_user("other")
        subscription_service.subscribe(fan.id, channel.id, db)
        subscription_service.subscribe(fan.id, channel.id, db)
        subscription_service.subscribe(fan.id, other.id, db)

        removed = subscription_service.unsubscribe(fan.id, channel.id, db)

        assert removed == 2
        assert _edges(db, fan, channel) == 0
        assert _edges(db, fan, other) == 1

    def test_not_subscribed_is_noop(self, db, make_user):
        fan = make_user("fan")
        channel = make_user("channel")

        assert subscription_service.unsubscribe(fan.id, channel.id, db) == 0
