# Import every model here so Alembic autogenerate can discover them
# and so Base.metadata.create_all() works in tests.
# Dependency order matters: referenced tables must come before tables
# that FK-reference them.

from swiss_travel.models.destination import Destination   # noqa: F401

# both FK-reference destinations
from swiss_travel.models.hotel import Hotel               # noqa: F401
from swiss_travel.models.activity import Activity         # noqa: F401

from swiss_travel.models.wishlist import ItemType, WishlistItem  # noqa: F401
