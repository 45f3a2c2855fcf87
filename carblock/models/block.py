# carblock/models/block.py
"""
Blocks table — "my car (blocker_plate) is blocked by blocked_plate".
blocked_plate is a plain string, not a FK: owners are resolved at read
time through user_plates so blocks survive plate transfers.
One (blocker_plate, blocked_plate) pair may exist only once.
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Index, func
from carblock.database import Base
from carblock.models.user import _uuid_str, _now


class Block(Base):
    __tablename__ = "blocks"

    id = Column(String(36), primary_key=True, default=_uuid_str)
    blocker_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    blocker_plate = Column(String(20), nullable=False)   # snapshot at creation time
    blocked_plate = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_now, nullable=False, index=True)

    def __repr__(self):
        return f"<Block {self.id} {self.blocker_plate} -> {self.blocked_plate}>"


Index(
    "uq_blocks_plate_pair",
    func.upper(func.trim(Block.blocker_plate)),
    func.upper(func.trim(Block.blocked_plate)),
    unique=True,
)
Index("idx_blocks_blocked_plate_norm", func.upper(func.trim(Block.blocked_plate)))
