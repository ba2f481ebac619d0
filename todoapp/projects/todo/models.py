from todoapp import db
from datetime import datetime

PRIORITIES = ('IMPORTANT', 'MEDIUM', 'EASY')
DEFAULT_PRIORITY = 'MEDIUM'
TEXT_MAX_LENGTH = 200


class Todo(db.Model):
    __tablename__ = 'todo_items'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    text = db.Column(db.String(TEXT_MAX_LENGTH), nullable=False)
    completed = db.Column(db.Boolean, default=False, nullable=False)
    due_date = db.Column(db.Date, nullable=False)
    priority = db.Column(db.String(10), nullable=False, default=DEFAULT_PRIORITY)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # Relationship to User
    user = db.relationship('User', backref=db.backref('todos', lazy=True))

    __table_args__ = (
        db.Index('ix_todo_items_user_created', 'user_id', 'created_at'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'text': self.text,
            'completed': self.completed,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'priority': self.priority,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f'<Todo {self.id}: {self.text}>'
