BLOOD_GROUPS = ["O+", "O-", "A+", "A-", "B+", "B-", "AB+", "AB-"]
BLOOD_GROUP_CHOICES = [(bg, bg) for bg in BLOOD_GROUPS]

DONATION_TYPE_CHOICES = [
    ('blood', 'Whole Blood'),
    ('plasma', 'Plasma'),
    ('platelets', 'Platelets'),
    ('double_red', 'Double Red'),
]
DONATION_TYPES = [value for value, _ in DONATION_TYPE_CHOICES]
