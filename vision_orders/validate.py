from jsonschema import Draft7Validator

from vision_orders.models import LabelType

item_schema = {
    'type': 'object',
    'properties': {
        'id': {'type': 'string', 'minLength': 1},
        'productName': {'type': 'string', 'minLength': 1},
        'quantityText': {'type': 'string'},
        'client': {'type': 'string'},
        'labelType': {'enum': [t.value for t in LabelType]},
        'include': {'type': 'boolean'},
        'quantity': {'type': 'number'},
        'units': {'type': 'integer'},
        'cantidad': {'type': 'integer'},
    },
    'required': ['id', 'productName', 'quantityText', 'client', 'labelType', 'include']
}

schema = {
    'type': 'object',
    'properties': {
        'client': {'type': 'string'},
        'items': {'type': 'array', 'items': item_schema},
        'rawText': {'type': 'string'},
        'notes': {'type': 'string', 'minLength': 1},
        'packingDate': {'type': ['string', 'null'], 'pattern': r'^\d{4}-\d{2}-\d{2}$'},
        'table': {
            'type': 'object',
            'properties': {
                'headers': {'type': 'array', 'items': {'type': 'string'}},
                'rows': {'type': 'array', 'items': {'type': 'array', 'items': {'type': 'string'}}},
            },
            'required': ['headers', 'rows']
        },
    },
    'required': ['client', 'items', 'rawText']
}

_validator = Draft7Validator(schema)


def validate_obj(obj):
    errors = sorted(_validator.iter_errors(obj), key=lambda e: list(e.path))
    if not errors:
        return True, []
    return False, [f"{'/'.join(str(p) for p in e.path) or '<root>'}: {e.message}" for e in errors]
