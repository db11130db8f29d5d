"""Enumerations shared by every app.

Stored values use these spellings verbatim so existing rows stay compatible.
"""

BLOOD_GROUPS = [
    'A+', 'A-', 'A1+', 'A1-', 'A1B+', 'A1B-', 'A2+', 'A2-', 'A2B+', 'A2B-',
    'AB+', 'AB-', 'B+', 'B-', 'Bombay Blood Group', 'INRA', 'O+', 'O-',
]
BLOOD_GROUP_CHOICES = [(group, group) for group in BLOOD_GROUPS]

GENDER_CHOICES = [
    ('Male', 'Male'),
    ('Female', 'Female'),
    ('Other', 'Other'),
]

URGENCY_CRITICAL = 'Critical'
URGENCY_HIGH = 'High'
URGENCY_MEDIUM = 'Medium'
URGENCY_CHOICES = [
    (URGENCY_CRITICAL, 'Critical'),
    (URGENCY_HIGH, 'High'),
    (URGENCY_MEDIUM, 'Medium'),
]

REQUEST_ACTIVE = 'Active'
REQUEST_CLOSED = 'Closed'
REQUEST_STATUS_CHOICES = [
    (REQUEST_ACTIVE, 'Active'),
    (REQUEST_CLOSED, 'Closed'),
]

FACILITY_TYPE_CHOICES = [
    ('Hospital', 'Hospital'),
    ('Blood Bank', 'Blood Bank'),
    ('Clinic', 'Clinic'),
    ('NGO', 'NGO'),
]

SCREEN_RESULT_CHOICES = [
    ('Negative', 'Negative'),
    ('Positive', 'Positive'),
]

RH_FACTOR_CHOICES = [
    ('Positive', 'Positive'),
    ('Negative', 'Negative'),
]

DONOR_GROUP = 'DONOR'
ORGANIZATION_GROUP = 'ORGANIZATION'
