"""Test fixtures for oxapi tests.

This module provides sample OpenAPI documents and utilities for testing
model building.
"""

import copy


def openapi_document(
    schemas: dict | None = None,
    paths: dict | None = None,
    title: str = 'Test API',
    **components,
) -> dict:
    """Create a minimal OpenAPI 3.0 document around schemas and paths."""
    document = {
        'openapi': '3.0.3',
        'info': {'title': title, 'version': '1.0.0'},
        'paths': copy.deepcopy(paths) if paths else {},
    }
    if schemas is not None or components:
        document['components'] = {}
        if schemas is not None:
            document['components']['schemas'] = copy.deepcopy(schemas)
        for key, value in components.items():
            document['components'][key] = copy.deepcopy(value)
    return document


def json_response(schema: dict, description: str = 'Successful response') -> dict:
    return {
        'description': description,
        'content': {'application/json': {'schema': schema}},
    }


# Minimal OpenAPI 3.0 document for basic testing
MINIMAL_OPENAPI_SPEC = {
    'openapi': '3.0.0',
    'info': {'title': 'Minimal API', 'version': '1.0.0'},
    'paths': {},
}

# User management API with models, path-level parameters and several responses
USERS_API_SPEC = {
    'openapi': '3.0.3',
    'info': {
        'title': 'Users API',
        'version': '2.1.0',
        'description': 'Manage users\nand their posts.',
        'contact': {'email': 'api@example.com'},
        'license': {'name': 'MIT', 'url': 'https://opensource.org/licenses/MIT'},
        'termsOfService': 'https://example.com/terms',
    },
    'paths': {
        '/users': {
            'get': {
                'operationId': 'listUsers',
                'summary': 'List users',
                'tags': ['users'],
                'parameters': [
                    {
                        'name': 'limit',
                        'in': 'query',
                        'schema': {'type': 'integer', 'default': 20},
                    },
                    {'name': 'offset', 'in': 'query', 'schema': {'type': 'integer'}},
                    {
                        'name': 'type',
                        'in': 'query',
                        'schema': {'$ref': '#/components/schemas/type'},
                    },
                ],
                'responses': {
                    '200': json_response(
                        {'type': 'array', 'items': {'$ref': '#/components/schemas/User'}}
                    ),
                    'default': json_response(
                        {'$ref': '#/components/schemas/Error'}, 'Unexpected error'
                    ),
                },
            },
            'post': {
                'operationId': 'createUser',
                'requestBody': {
                    'required': True,
                    'content': {
                        'application/json': {
                            'schema': {'$ref': '#/components/schemas/User'}
                        }
                    },
                },
                'responses': {
                    '201': json_response({'$ref': '#/components/schemas/User'}),
                },
            },
        },
        '/users/{userId}': {
            'parameters': [
                {
                    'name': 'userId',
                    'in': 'path',
                    'required': True,
                    'schema': {'type': 'integer', 'format': 'int64'},
                }
            ],
            'get': {
                'operationId': 'getUserById',
                'summary': 'Get a user',
                'description': 'Returns a single user.',
                'responses': {
                    '200': json_response({'$ref': '#/components/schemas/User'}),
                    '404': json_response(
                        {'$ref': '#/components/schemas/Error'}, 'Not found'
                    ),
                },
            },
            'put': {
                'operationId': 'updateUser',
                'requestBody': {
                    'content': {
                        'application/json': {
                            'schema': {
                                'type': 'object',
                                'properties': {
                                    'username': {'type': 'string'},
                                    'email': {'type': 'string', 'format': 'email'},
                                },
                            }
                        }
                    }
                },
                'responses': {
                    '200': json_response({'$ref': '#/components/schemas/User'}),
                },
            },
            'delete': {
                'operationId': 'deleteUser',
                'responses': {'204': {'description': 'Deleted'}},
            },
        },
        '/posts/{postId}/comments': {
            'get': {
                'operationId': 'getPostComments',
                'parameters': [
                    {
                        'name': 'postId',
                        'in': 'path',
                        'required': True,
                        'schema': {'type': 'integer', 'format': 'int64'},
                    },
                    {'name': 'self', 'in': 'query', 'schema': {'type': 'string'}},
                    {
                        'name': 'limit',
                        'in': 'query',
                        'schema': {'type': 'integer', 'format': 'int32'},
                    },
                ],
                'responses': {
                    '200': json_response(
                        {
                            'type': 'array',
                            'items': {'$ref': '#/components/schemas/Comment'},
                        }
                    ),
                },
            },
        },
    },
    'components': {
        'schemas': {
            'User': {
                'type': 'object',
                'description': 'A registered user.',
                'required': ['id', 'name'],
                'properties': {
                    'id': {'type': 'integer', 'format': 'int64'},
                    'name': {'type': 'string'},
                    'email': {'type': 'string', 'format': 'email'},
                    'type': {'$ref': '#/components/schemas/type'},
                    'tags': {'type': 'array', 'items': {'type': 'string'}},
                    'address': {
                        'type': 'object',
                        'properties': {
                            'street': {'type': 'string'},
                            'city': {'type': 'string'},
                        },
                    },
                    'createdAt': {'type': 'string', 'format': 'date-time'},
                },
            },
            'type': {
                'type': 'string',
                'description': 'Kind of user account.',
                'enum': ['admin', 'user', 'guest'],
            },
            'Comment': {
                'type': 'object',
                'required': ['id'],
                'properties': {
                    'id': {'type': 'integer', 'format': 'int64'},
                    'body': {'type': 'string'},
                    'parent': {'$ref': '#/components/schemas/Comment'},
                    'replies': {
                        'type': 'array',
                        'items': {'$ref': '#/components/schemas/Comment'},
                    },
                },
            },
            'Error': {
                'type': 'object',
                'required': ['code', 'message'],
                'properties': {
                    'code': {'type': 'integer', 'format': 'int32'},
                    'message': {'type': 'string'},
                },
            },
        }
    },
}

# GET /users/{userId} with optional query parameters
USER_QUERY_SPEC = openapi_document(
    schemas={
        'UserType': {'type': 'string', 'enum': ['admin', 'user', 'guest']},
    },
    paths={
        '/users/{userId}': {
            'get': {
                'operationId': 'getUser',
                'parameters': [
                    {
                        'name': 'limit',
                        'in': 'query',
                        'schema': {'type': 'integer', 'default': 20},
                    },
                    {
                        'name': 'userId',
                        'in': 'path',
                        'required': True,
                        'schema': {'type': 'string'},
                    },
                    {'name': 'offset', 'in': 'query', 'schema': {'type': 'integer'}},
                    {
                        'name': 'type',
                        'in': 'query',
                        'schema': {'$ref': '#/components/schemas/UserType'},
                    },
                ],
                'responses': {'200': json_response({'type': 'string'})},
            }
        }
    },
    title='User Query API',
)

# Identifiers that collide with Rust keywords
KEYWORD_SPEC = openapi_document(
    schemas={
        'type': {'type': 'string', 'enum': ['admin', 'user', 'guest']},
        'Self': {'type': 'object', 'properties': {'id': {'type': 'string'}}},
        'ApiResponse': {
            'type': 'object',
            'properties': {
                'code': {'type': 'integer', 'format': 'int32'},
                'type': {'type': 'string'},
                'Type': {'type': 'string'},
                'self': {'type': 'string'},
                'match': {'type': 'boolean'},
            },
        },
    },
    paths={
        '/search': {
            'get': {
                'operationId': 'type',
                'parameters': [
                    {'name': 'self', 'in': 'query', 'schema': {'type': 'string'}},
                    {'name': 'self_', 'in': 'query', 'schema': {'type': 'string'}},
                    {'name': 'fn', 'in': 'query', 'schema': {'type': 'string'}},
                ],
                'responses': {
                    '200': json_response({'$ref': '#/components/schemas/ApiResponse'})
                },
            },
            'post': {
                'operationId': 'new',
                'responses': {'204': {'description': 'Created'}},
            },
        },
        '/type': {
            'get': {
                'operationId': 'Type',
                'responses': {'204': {'description': 'No content'}},
            }
        },
    },
    title='Keyword Test API',
)

# Self-referential and mutually referential schemas
RECURSIVE_SPEC = openapi_document(
    schemas={
        'TreeNode': {
            'type': 'object',
            'properties': {
                'value': {'type': 'string'},
                'parent': {'$ref': '#/components/schemas/TreeNode'},
                'children': {
                    'type': 'array',
                    'items': {'$ref': '#/components/schemas/TreeNode'},
                },
            },
        },
        'Person': {
            'type': 'object',
            'properties': {
                'name': {'type': 'string'},
                'employer': {'$ref': '#/components/schemas/Company'},
            },
        },
        'Company': {
            'type': 'object',
            'properties': {
                'name': {'type': 'string'},
                'ceo': {'$ref': '#/components/schemas/Person'},
            },
        },
    },
    title='Recursive API',
)

# Schema composition with allOf
ALL_OF_SPEC = openapi_document(
    schemas={
        'Pet': {
            'type': 'object',
            'required': ['name'],
            'properties': {
                'name': {'type': 'string'},
                'tag': {'type': 'string'},
            },
        },
        'Dog': {
            'description': 'A dog.',
            'allOf': [
                {'$ref': '#/components/schemas/Pet'},
                {
                    'type': 'object',
                    'required': ['bark'],
                    'properties': {'bark': {'type': 'boolean'}},
                },
            ],
        },
        'PetAlias': {'allOf': [{'$ref': '#/components/schemas/Pet'}]},
    },
    title='Pet Composition API',
)
