"""
Scripted stand-ins for the MediaWiki Action API.

Response builders return bodies shaped like the real API; FakeTransport
replays them in order.
"""

from business_kb_publisher.publishing.transport import host_of

# Datatypes fitting every value the entity builder emits
BUILDER_DATATYPES = {
    "P17": "wikibase-item",
    "P31": "wikibase-item",
    "P131": "wikibase-item",
    "P159": "wikibase-item",
    "P452": "wikibase-item",
    "P1454": "wikibase-item",
    "P625": "globe-coordinate",
    "P6375": "monolingualtext",
    "P856": "url",
    "P1448": "monolingualtext",
    "P1329": "string",
    "P968": "url",
    "P1056": "string",
    "P571": "time",
    "P1128": "quantity",
    "P2002": "external-id",
    "P2013": "external-id",
    "P2003": "external-id",
    "P854": "url",
    "P813": "time",
    "P1476": "monolingualtext",
}


def login_token_response(token="login-token+\\"):
    return {"batchcomplete": "", "query": {"tokens": {"logintoken": token}}}


def login_success_response(username="TestUser@pytest"):
    return {"login": {"result": "Success", "lguserid": 42, "lgusername": username}}


def login_failed_response(reason="Incorrect username or password entered."):
    return {"login": {"result": "Failed", "reason": reason}}


def login_need_token_response():
    return {"login": {"result": "NeedToken", "token": "fresh-login-token+\\"}}


def edit_token_response(token="csrf-token+\\"):
    return {"batchcomplete": "", "query": {"tokens": {"csrftoken": token}}}


def property_datatypes_response(datatypes=None, missing=()):
    """wbgetentities&props=datatype body; ids in ``missing`` do not exist."""
    datatypes = BUILDER_DATATYPES if datatypes is None else datatypes
    entities = {
        pid: {"type": "property", "datatype": datatype, "id": pid}
        for pid, datatype in datatypes.items()
    }
    for pid in missing:
        entities[pid] = {"id": pid, "missing": ""}
    return {"entities": entities, "success": 1}


def entity_response(identifier="Q4115189", revision=12345):
    return {"entity": {"id": identifier, "type": "item", "lastrevid": revision}, "success": 1}


def error_response(code, info="", messages=None):
    error = {"code": code, "info": info}
    if messages is not None:
        error["messages"] = messages
    return {"error": error}


def conflict_response(existing_identifier="Q4115189"):
    return error_response(
        "modification-failed",
        f"Item [[{existing_identifier}|{existing_identifier}]] already has label "
        '"Acme Widgets" associated with language code en, using the same description text.',
        messages=[
            {
                "name": "wikibase-validator-label-with-description-conflict",
                "parameters": ["Acme Widgets", "en", f"[[{existing_identifier}]]"],
                "html": {"*": "..."},
            }
        ],
    )


def ready_to_write_responses(datatypes=None):
    """Login token, login, edit token, property datatypes: everything before a write."""
    return [
        login_token_response(),
        login_success_response(),
        edit_token_response(),
        property_datatypes_response(datatypes),
    ]


def happy_path_responses(identifier="Q4115189"):
    """One successful publish."""
    return ready_to_write_responses() + [entity_response(identifier)]


class FakeTransport:
    """
    Scripted Transport.

    Pops one scripted response per request. Exceptions in the script are
    raised instead of returned.
    """

    def __init__(self, responses, host="test.wikidata.org"):
        self.responses = responses
        self.host = host
        self.calls: list[tuple[str, dict]] = []
        self.closed = False

    def get(self, params: dict) -> dict:
        return self._next("GET", params)

    def post(self, data: dict) -> dict:
        return self._next("POST", data)

    def close(self) -> None:
        self.closed = True

    def _next(self, method: str, payload: dict) -> dict:
        self.calls.append((method, dict(payload)))
        if not self.responses:
            raise AssertionError(f"Unexpected {method} {payload.get('action')}: script exhausted")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def actions(self) -> list[str]:
        """Action (and token type) of each request, e.g. 'query:login'."""
        names = []
        for _, payload in self.calls:
            action = payload.get("action")
            names.append(f"{action}:{payload['type']}" if "type" in payload else action)
        return names


class FakeTransportFactory:
    """
    TransportFactory returning FakeTransports that share one response script.

    Records every API URL requested so tests can check which deployment a
    publish attempt was sent to.
    """

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.transports: list[FakeTransport] = []
        self.urls: list[str] = []

    def __call__(self, api_url: str) -> FakeTransport:
        self.urls.append(api_url)
        transport = FakeTransport(self.responses, host=host_of(api_url))
        self.transports.append(transport)
        return transport

    @property
    def calls(self) -> list[tuple[str, dict]]:
        return [call for transport in self.transports for call in transport.calls]

    @property
    def actions(self) -> list[str]:
        return [action for transport in self.transports for action in transport.actions]


