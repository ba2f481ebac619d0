from flask_wtf import FlaskForm
from wtforms import Form, StringField, SelectField, SubmitField, DateField
from wtforms.validators import DataRequired, InputRequired, Length, AnyOf, ValidationError

from todoapp.projects.todo.models import PRIORITIES, DEFAULT_PRIORITY, TEXT_MAX_LENGTH


def _strip(value):
    return value.strip() if isinstance(value, str) else value


def _default_priority(value):
    return value or DEFAULT_PRIORITY


class IsoDateField(DateField):
    """
    A DateField that only accepts the exact 'YYYY-MM-DD' spelling.

    strptime on its own also takes single-digit months and days, padded
    values and non-ASCII digits; those are rejected by requiring the input to
    equal the parsed date's isoformat().
    """

    def __init__(self, label=None, validators=None, invalid_message=None, **kwargs):
        super().__init__(label, validators, format='%Y-%m-%d', **kwargs)
        self.invalid_message = invalid_message

    def process_formdata(self, valuelist):
        if not valuelist or not valuelist[0]:
            return
        try:
            super().process_formdata(valuelist)
        except ValueError:
            raise ValueError(self.invalid_message)
        if self.data.isoformat() != valuelist[0]:
            self.data = None
            raise ValueError(self.invalid_message)


class TodoFields(Form):
    """
    Rules for a todo's editable fields, run by the todo service.

    Messages are catalog keys. ``today`` is the first acceptable due date.
    """
    text = StringField(filters=[_strip], validators=[
        DataRequired(message='todo.errors.text_required'),
        Length(max=TEXT_MAX_LENGTH, message='todo.errors.text_too_long'),
    ])
    due_date = IsoDateField(invalid_message='todo.errors.due_date_invalid', validators=[
        InputRequired(message='todo.errors.due_date_invalid'),
    ])
    priority = StringField(filters=[_default_priority], validators=[
        AnyOf(PRIORITIES, message='todo.errors.priority_invalid'),
    ])

    def __init__(self, formdata=None, today=None, **kwargs):
        super().__init__(formdata, **kwargs)
        self.today = today

    def validate_due_date(self, field):
        if field.data is not None and self.today is not None and field.data < self.today:
            raise ValidationError('todo.errors.due_date_past')


class TodoForm(FlaskForm):
    text = StringField('Task',
                       render_kw={"placeholder": "What needs to be done?",
                                  "maxlength": TEXT_MAX_LENGTH})
    due_date = StringField('Due date', render_kw={"type": "date"})
    priority = SelectField('Priority',
                           choices=[(p, p) for p in PRIORITIES],
                           default=DEFAULT_PRIORITY,
                           validate_choice=False)
    submit = SubmitField('Add Task')
