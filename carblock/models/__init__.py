# carblock — Database Models
# Import all models here for SQLAlchemy discovery

from carblock.models.user import User                  # noqa
from carblock.models.user_plate import UserPlate       # noqa
from carblock.models.block import Block                # noqa
from carblock.models.notification import Notification  # noqa
