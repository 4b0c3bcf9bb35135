"""
Pointman signals — public event API.

Emitted signals (sender=LoyaltyEngine):
- points_earned: user_id, entry
- points_redeemed: user_id, entry
- stage_changed: user_id, previous, current
- benefit_applied: user_id, application
"""

from django.dispatch import Signal

points_earned = Signal()
points_redeemed = Signal()
stage_changed = Signal()
benefit_applied = Signal()
