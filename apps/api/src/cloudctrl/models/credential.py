from datetime import datetime

from sqlalchemy import String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class UserCredential(Base):
    """Per-user encrypted credential blobs, one column per provider."""

    __tablename__ = "user_credentials"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    aws_encrypted: Mapped[str | None] = mapped_column(Text, nullable=True)
    azure_encrypted: Mapped[str | None] = mapped_column(Text, nullable=True)
    gcp_encrypted: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<UserCredential user_id={self.user_id}>"
