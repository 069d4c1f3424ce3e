from coinclaim import db

PLAYER_ID_MAX_LENGTH = 64


class StoredValue(db.Model):
    """One persisted progress value, e.g. ('currency', <player id>) -> 120."""
    __tablename__ = 'stored_value'
    __table_args__ = (db.UniqueConstraint('store', 'key', name='uq_stored_value_store_key'),)
    id = db.Column(db.Integer, primary_key=True)
    store = db.Column(db.String(32), nullable=False, index=True)
    key = db.Column(db.String(PLAYER_ID_MAX_LENGTH), nullable=False)
    value = db.Column(db.Text, nullable=False, default='null')
    updated_at = db.Column(db.DateTime, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            'store': self.store,
            'key': self.key,
            'value': self.value,
        }
