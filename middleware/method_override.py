"""
Lets HTML forms (GET/POST only) reach PUT and DELETE routes.

A POST carrying ``?_method=PUT`` or an ``X-HTTP-Method-Override`` header is
dispatched as that method.
"""
from urllib.parse import parse_qs

ALLOWED_METHODS = frozenset(['PUT', 'PATCH', 'DELETE'])


class HTTPMethodOverrideMiddleware:

    def __init__(self, app):
        self.app = app

    def __call__(self, environ, start_response):
        if environ.get('REQUEST_METHOD', '').upper() == 'POST':
            method = environ.get('HTTP_X_HTTP_METHOD_OVERRIDE', '')
            if not method:
                query = parse_qs(environ.get('QUERY_STRING', ''))
                method = (query.get('_method') or [''])[0]
            method = method.upper()
            if method in ALLOWED_METHODS:
                environ['REQUEST_METHOD'] = method
        return self.app(environ, start_response)
