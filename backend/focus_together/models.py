from focus_together import db


class FocusSessionRecord(db.Model):
    __tablename__ = 'focus_session'
    # Owner's visitor id, which is also the session id
    id = db.Column(db.String(64), primary_key=True)
    focus_duration = db.Column(db.BigInteger, nullable=False)
    break_duration = db.Column(db.BigInteger, nullable=False)
    long_break_duration = db.Column(db.BigInteger, nullable=False)
    num_focus_per_long_break = db.Column(db.Integer, nullable=False)
    counter = db.Column(db.Integer, nullable=False, default=0)
    last_ping = db.Column(db.BigInteger, nullable=False, default=0)
    activity_state = db.Column(db.String(16), nullable=False, default='NOT_STARTED')
    pomodoro_state = db.Column(db.String(16), nullable=False, default='FOCUS')
    # NULL until the first start; 0 is a valid start time
    pomodoro_time = db.Column(db.BigInteger, nullable=True)
    pause_delta = db.Column(db.BigInteger, nullable=False, default=0)
    participants = db.relationship(
        'ParticipantRecord',
        back_populates='session',
        cascade='all, delete-orphan',
    )


class ParticipantRecord(db.Model):
    __tablename__ = 'participant'
    session_id = db.Column(db.String(64), db.ForeignKey('focus_session.id'), primary_key=True)
    participant_id = db.Column(db.String(64), primary_key=True)
    last_ping = db.Column(db.BigInteger, nullable=False)
    session = db.relationship('FocusSessionRecord', back_populates='participants')
