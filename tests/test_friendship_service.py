"""Tests for the friend request lifecycle.

Coverage:
- Declared transition table
- send/accept/reject/cancel preconditions and errors
- One active edge per unordered pair, including a racing insert
- remove_friend in both directions, no-op when absent
- block/unblock rules
"""

import pytest

from socialgraph.core.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    SelfReferenceError,
)
from socialgraph.modules.friendships.models.friendship import (
    FriendEdge,
    FriendStatus,
    canonical_pair_key,
)
from socialgraph.modules.friendships.schemas.friendship import RequestDirection
from socialgraph.modules.friendships.services import friendship as friendship_service
from socialgraph.modules.friendships.services.friendship import (
    accept_request,
    block_user,
    can_transition,
    cancel_request,
    get_pending_requests,
    reject_request,
    remove_friend,
    send_request,
    unblock_user,
)
from socialgraph.modules.friendships.services.graph import are_friends, get_friends


def _active_edges(db, a, b):
    return db.query(FriendEdge).filter(
        FriendEdge.active_pair_key == canonical_pair_key(a.id, b.id)
    ).all()


class TestTransitionTable:
    """Tests for the declared transition table."""

    def test_pending_can_be_resolved(self):
        assert can_transition(FriendStatus.PENDING, FriendStatus.ACCEPTED)
        assert can_transition(FriendStatus.PENDING, FriendStatus.REJECTED)

    def test_accepted_cannot_be_accepted_again(self):
        assert not can_transition(FriendStatus.ACCEPTED, FriendStatus.ACCEPTED)
        assert not can_transition(FriendStatus.ACCEPTED, FriendStatus.REJECTED)

    def test_anything_can_become_blocked_except_terminal_states(self):
        assert can_transition(None, FriendStatus.BLOCKED)
        assert can_transition(FriendStatus.PENDING, FriendStatus.BLOCKED)
        assert can_transition(FriendStatus.ACCEPTED, FriendStatus.BLOCKED)
        assert not can_transition(FriendStatus.BLOCKED, FriendStatus.ACCEPTED)

    def test_canonical_pair_key_is_order_independent(self):
        assert canonical_pair_key("b", "a") == canonical_pair_key("a", "b") == "a:b"


class TestSendRequest:
    """Tests for send_request."""

    def test_creates_pending_edge(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")

        edge = send_request(db, alice.id, bob.id)

        assert edge.status == FriendStatus.PENDING.value
        assert edge.sender_id == alice.id
        assert edge.receiver_id == bob.id
        assert edge.active_pair_key == canonical_pair_key(alice.id, bob.id)

    def test_self_request_fails(self, db, make_user):
        alice = make_user("alice")

        with pytest.raises(SelfReferenceError):
            send_request(db, alice.id, alice.id)

    def test_unknown_receiver_fails(self, db, make_user):
        alice = make_user("alice")

        with pytest.raises(NotFoundError):
            send_request(db, alice.id, "ghost")

    def test_duplicate_request_conflicts(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        send_request(db, alice.id, bob.id)

        with pytest.raises(ConflictError):
            send_request(db, alice.id, bob.id)

    def test_opposite_direction_request_conflicts(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        send_request(db, alice.id, bob.id)

        with pytest.raises(ConflictError):
            send_request(db, bob.id, alice.id)

        assert len(_active_edges(db, alice, bob)) == 1

    def test_request_to_existing_friend_conflicts(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        edge = send_request(db, alice.id, bob.id)
        accept_request(db, edge.id, bob.id)

        with pytest.raises(ConflictError) as exc_info:
            send_request(db, bob.id, alice.id)
        assert exc_info.value.details["status"] == "ACCEPTED"

    def test_racing_insert_is_rejected_by_storage(self, db, make_user, monkeypatch):
        """A stale existence check still cannot produce a second active edge."""
        alice, bob = make_user("alice"), make_user("bob")
        send_request(db, bob.id, alice.id)

        # Simulate the other request landing between our check and our insert
        monkeypatch.setattr(friendship_service, "get_active_edge", lambda *args: None)

        with pytest.raises(ConflictError):
            send_request(db, alice.id, bob.id)

        assert len(_active_edges(db, alice, bob)) == 1

    def test_new_request_allowed_after_rejection(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        first = send_request(db, alice.id, bob.id)
        reject_request(db, first.id, bob.id)

        second = send_request(db, alice.id, bob.id)

        assert second.id != first.id
        assert second.status == FriendStatus.PENDING.value


class TestAcceptReject:
    """Tests for accept_request and reject_request."""

    def test_alice_and_bob_become_friends(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")

        edge = send_request(db, alice.id, bob.id)
        assert edge.status == FriendStatus.PENDING.value

        edge = accept_request(db, edge.id, bob.id)

        assert edge.status == FriendStatus.ACCEPTED.value
        assert are_friends(db, alice.id, bob.id)
        assert [u.id for u in get_friends(db, alice.id)] == [bob.id]
        assert [u.id for u in get_friends(db, bob.id)] == [alice.id]

    def test_unknown_request_fails(self, db, make_user):
        bob = make_user("bob")

        with pytest.raises(NotFoundError):
            accept_request(db, "missing", bob.id)

    def test_only_receiver_can_accept(self, db, make_user):
        alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
        edge = send_request(db, alice.id, bob.id)

        with pytest.raises(AuthorizationError):
            accept_request(db, edge.id, alice.id)
        with pytest.raises(AuthorizationError):
            accept_request(db, edge.id, carol.id)

    def test_accepting_twice_fails(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        edge = send_request(db, alice.id, bob.id)
        accept_request(db, edge.id, bob.id)

        with pytest.raises(InvalidStateError):
            accept_request(db, edge.id, bob.id)

        assert db.query(FriendEdge).count() == 1

    def test_concurrent_transition_is_detected(self, db, make_user):
        """If the row changed after it was read, the conditional update refuses."""
        alice, bob = make_user("alice"), make_user("bob")
        edge = send_request(db, alice.id, bob.id)
        edge_id = edge.id

        # Another request rejects it behind this session's back
        db.query(FriendEdge).filter(FriendEdge.id == edge_id).update(
            {"status": FriendStatus.REJECTED.value}, synchronize_session=False
        )
        db.commit()
        stale = FriendEdge(
            id=edge_id,
            sender_id=alice.id,
            receiver_id=bob.id,
            status=FriendStatus.PENDING.value,
        )

        with pytest.raises(InvalidStateError):
            friendship_service._transition(db, stale, FriendStatus.ACCEPTED)

    def test_reject_frees_the_pair(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        edge = send_request(db, alice.id, bob.id)

        edge = reject_request(db, edge.id, bob.id)

        assert edge.status == FriendStatus.REJECTED.value
        assert edge.active_pair_key is None
        assert not are_friends(db, alice.id, bob.id)

    def test_rejected_request_cannot_be_accepted(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        edge = send_request(db, alice.id, bob.id)
        reject_request(db, edge.id, bob.id)

        with pytest.raises(InvalidStateError):
            accept_request(db, edge.id, bob.id)

    def test_only_receiver_can_reject(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        edge = send_request(db, alice.id, bob.id)

        with pytest.raises(AuthorizationError):
            reject_request(db, edge.id, alice.id)


class TestCancelAndPending:
    """Tests for cancel_request and get_pending_requests."""

    def test_sender_can_cancel_pending_request(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        edge = send_request(db, alice.id, bob.id)

        cancel_request(db, edge.id, alice.id)

        assert db.query(FriendEdge).count() == 0

    def test_receiver_cannot_cancel(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        edge = send_request(db, alice.id, bob.id)

        with pytest.raises(AuthorizationError):
            cancel_request(db, edge.id, bob.id)

    def test_cannot_cancel_accepted_request(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        edge = send_request(db, alice.id, bob.id)
        accept_request(db, edge.id, bob.id)

        with pytest.raises(InvalidStateError):
            cancel_request(db, edge.id, alice.id)

    def test_pending_requests_by_direction(self, db, make_user):
        alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
        outgoing = send_request(db, alice.id, bob.id)
        incoming = send_request(db, carol.id, alice.id)

        sent = get_pending_requests(db, alice.id, RequestDirection.SENT)
        received = get_pending_requests(db, alice.id, RequestDirection.RECEIVED)
        everything = get_pending_requests(db, alice.id, RequestDirection.ALL)

        assert [e.id for e in sent] == [outgoing.id]
        assert [e.id for e in received] == [incoming.id]
        assert {e.id for e in everything} == {outgoing.id, incoming.id}


class TestRemoveFriend:
    """Tests for remove_friend."""

    def test_receiver_can_remove_friendship(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        edge = send_request(db, alice.id, bob.id)
        accept_request(db, edge.id, bob.id)

        assert remove_friend(db, bob.id, alice.id) is True

        assert not are_friends(db, alice.id, bob.id)
        assert get_friends(db, alice.id) == []

    def test_remove_without_friendship_is_noop(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")

        assert remove_friend(db, alice.id, bob.id) is False

    def test_remove_leaves_pending_request_alone(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        send_request(db, alice.id, bob.id)

        assert remove_friend(db, alice.id, bob.id) is False
        assert len(_active_edges(db, alice, bob)) == 1

    def test_friends_can_request_again_after_removal(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        edge = send_request(db, alice.id, bob.id)
        accept_request(db, edge.id, bob.id)
        remove_friend(db, alice.id, bob.id)

        again = send_request(db, bob.id, alice.id)

        assert again.status == FriendStatus.PENDING.value


class TestBlocking:
    """Tests for block_user and unblock_user."""

    def test_block_without_history_creates_edge(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")

        edge = block_user(db, alice.id, bob.id)

        assert edge.status == FriendStatus.BLOCKED.value
        assert edge.blocked_by == alice.id

    def test_block_prevents_requests_both_ways(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        block_user(db, alice.id, bob.id)

        with pytest.raises(ConflictError):
            send_request(db, bob.id, alice.id)
        with pytest.raises(ConflictError):
            send_request(db, alice.id, bob.id)

    def test_blocking_a_friend_ends_friendship(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        edge = send_request(db, alice.id, bob.id)
        accept_request(db, edge.id, bob.id)

        blocked = block_user(db, bob.id, alice.id)

        assert blocked.id == edge.id
        assert blocked.blocked_by == bob.id
        assert not are_friends(db, alice.id, bob.id)
        assert get_friends(db, alice.id) == []
        assert get_friends(db, bob.id) == []

    def test_blocking_pending_request(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        edge = send_request(db, alice.id, bob.id)

        blocked = block_user(db, bob.id, alice.id)

        assert blocked.id == edge.id
        with pytest.raises(InvalidStateError):
            accept_request(db, edge.id, bob.id)

    def test_block_is_idempotent(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        first = block_user(db, alice.id, bob.id)

        second = block_user(db, alice.id, bob.id)

        assert second.id == first.id
        assert len(_active_edges(db, alice, bob)) == 1

    def test_counter_block_conflicts_and_keeps_first_blocker(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        block_user(db, alice.id, bob.id)

        with pytest.raises(ConflictError):
            block_user(db, bob.id, alice.id)

        edges = _active_edges(db, alice, bob)
        assert len(edges) == 1
        assert edges[0].blocked_by == alice.id
        with pytest.raises(AuthorizationError):
            unblock_user(db, bob.id, alice.id)

    def test_cannot_block_self(self, db, make_user):
        alice = make_user("alice")

        with pytest.raises(SelfReferenceError):
            block_user(db, alice.id, alice.id)

    def test_only_blocker_can_unblock(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")
        block_user(db, alice.id, bob.id)

        with pytest.raises(AuthorizationError):
            unblock_user(db, bob.id, alice.id)

        unblock_user(db, alice.id, bob.id)

        assert _active_edges(db, alice, bob) == []
        assert send_request(db, bob.id, alice.id).status == FriendStatus.PENDING.value

    def test_unblock_without_block_fails(self, db, make_user):
        alice, bob = make_user("alice"), make_user("bob")

        with pytest.raises(NotFoundError):
            unblock_user(db, alice.id, bob.id)
