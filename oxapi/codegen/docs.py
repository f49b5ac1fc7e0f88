"""Documentation lines for the types, operations and client of a model.

The lines are Markdown and contain no comment markers, so an emitter can wrap
them in whatever documentation syntax its language uses. An empty string is a
paragraph break.
"""

from oxapi.codegen.model import ApiInfo, Model, OperationDescriptor, TypeDescriptor

__all__ = [
    'clean_description',
    'type_doc_lines',
    'operation_doc_lines',
    'client_doc_lines',
    'model_docs',
]


def clean_description(description: str | None) -> str | None:
    """Collapse a multi-line description into one line."""
    if not description:
        return None
    lines = [line.strip() for line in description.splitlines()]
    cleaned = ' '.join(line for line in lines if line)
    return cleaned or None


def type_doc_lines(descriptor: TypeDescriptor) -> list[str]:
    description = clean_description(descriptor.description)
    return [description] if description else []


def operation_doc_lines(operation: OperationDescriptor) -> list[str]:
    """Summary, description (if it differs from the summary), method, path and id."""
    lines = []

    summary = operation.summary.strip() if operation.summary else ''
    if summary:
        lines.append(summary)

    description = operation.description.strip() if operation.description else ''
    if description and description != summary:
        if lines:
            lines.append('')
        lines.append(description)

    if lines:
        lines.append('')
    lines.append(f'**HTTP Method:** `{operation.http_method.upper()}`')
    lines.append(f'**Path:** `{operation.path}`')
    lines.append(f'**Operation ID:** `{operation.operation_id}`')
    return lines


def client_doc_lines(api: ApiInfo) -> list[str]:
    title = api.title.strip()
    lines = [f'API Client for {title}' if title else f'Generated API Client: {api.client_name}']

    description = api.description.strip() if api.description else ''
    if description:
        lines.extend(['', description])

    version = api.version.strip()
    if version:
        lines.extend(['', f'**API Version:** `{version}`'])

    if api.contact_email:
        lines.append(f'**Contact:** {api.contact_email}')

    if api.license_name and api.license_name.strip():
        if api.license_url:
            lines.append(f'**License:** [{api.license_name}]({api.license_url})')
        else:
            lines.append(f'**License:** {api.license_name}')

    if api.terms_of_service and api.terms_of_service.strip():
        lines.append(f'**Terms of Service:** {api.terms_of_service}')

    return lines


def model_docs(model: Model) -> dict:
    """Documentation lines of a whole model, keyed by identifier."""
    return {
        'client': client_doc_lines(model.api),
        'types': {
            descriptor.name: lines
            for descriptor in model.types
            if (lines := type_doc_lines(descriptor))
        },
        'operations': {
            operation.name: operation_doc_lines(operation)
            for operation in model.operations
        },
    }
