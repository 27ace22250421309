import logging

from django.conf import settings

from store.exceptions import CatalogValidationError
from .cart import Cart

logger = logging.getLogger(__name__)


class SessionCartStorage:
    """
    Keeps a Cart in the Django session: loaded on request, written back only
    when a transition actually changed it.
    """

    def __init__(self, session, key=None):
        self.session = session
        self.key = key or settings.CART_SESSION_KEY

    def load(self):
        data = self.session.get(self.key)
        try:
            return Cart.from_dict(data)
        except CatalogValidationError:
            logger.warning(f"Discarding unreadable cart in session {self.session.session_key}")
            self.session.pop(self.key, None)
            return Cart()

    def save(self, cart):
        if cart.is_empty:
            self.session.pop(self.key, None)
        else:
            self.session[self.key] = cart.to_dict()
        self.session.modified = True
        return cart

    def apply(self, transition, *args, **kwargs):
        """Run a cart transition against the stored cart and persist the result."""
        current = self.load()
        updated = transition(current, *args, **kwargs)
        if updated != current:
            self.save(updated)
        return updated
