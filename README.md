# notekeeper

A small notes service made of plain layers. It uses only the standard library.

- `notekeeper.domain`: the `Note`, `NoteCreate` and `NoteEvent` dataclasses
  and the error classes. Every error derives from `NoteError`.
- `notekeeper.repository`: `NoteRepository`, a thread-safe in-memory store.
  Deleting a note only marks it as deleted. A deleted note stays in the store,
  but `get_by_id` and `get_multi` no longer return it.
- `notekeeper.usecase`: `NoteUseCase`, the business layer. It passes each
  call to a repository and lets the repository's errors through unchanged.
- `notekeeper.eventbus`: `EventBus`, a bounded queue of `NoteEvent`s.
- `notekeeper.messages`: the wire messages (`NoteCreateRequest`,
  `NoteIDRequest`, `NoteMessage`, `NoteList`, `EventResponse` and others),
  `validate`, `StatusCode` and `RpcError`.
- `notekeeper.handler`: `NoteHandler`, the RPC-style note service, and
  `map_error`.
- `notekeeper.interceptors`: call wrappers for logging and authorization.
- `notekeeper.parameters`: the listening port and keepalive settings.
- `notekeeper.gateway`: `NoteGateway`, the client side of the note service.
- `notekeeper.httpapi`, `notekeeper.router`, `notekeeper.httpserver`: a JSON
  HTTP front end over a gateway, served as a WSGI application.
- `notekeeper.config`: settings read from environment variables.
- `notekeeper.logger`: `AppLogger` and `Field`, for structured console logging.

## Core layers

```python
import sys

from notekeeper.domain import IsDeletedError, NoteCreate
from notekeeper.logger import AppLogger
from notekeeper.repository import NoteRepository
from notekeeper.usecase import NoteUseCase

log = AppLogger("notes", sys.stderr)
notes = NoteUseCase(log, NoteRepository(log))

note = notes.create(NoteCreate("Groceries", "milk, eggs"))
assert notes.get_by_id(note.id).title == "Groceries"

notes.delete_by_id(note.id)
try:
    notes.get_by_id(note.id)
except IsDeletedError:
    pass
```

If no note was ever stored under an id, `get_by_id` and `delete_by_id` raise
`NotFoundError`. If the note was already deleted, they raise `IsDeletedError`.
Creation and update times are timezone-aware UTC datetimes.

## Event bus

`EventBus(log, capacity)` holds up to `capacity` events.

- `produce(event)` never blocks. It returns `True` if the event was queued.
  If the bus is full, it logs a warning, drops the event and returns `False`.
- With a capacity of 0, an event is accepted only while a consumer is
  already waiting.
- `consume(cancel)` waits for the next event. If the `threading.Event`
  `cancel` gets set, it raises `ConsumeCancelled` instead.
- A negative capacity raises `ValueError`.

## The note service

`NoteHandler(log, bus, usecase)` has the methods `create`, `get_by_id`,
`get_multi` and `delete_by_id`. They work on the message types in
`notekeeper.messages`.

- `create` trims the title and the description. It then checks them against
  these rules:
  - the title must be 1 to 49 characters long;
  - the description must be at most 254 characters long.
- After it stores a note, `create` publishes a `NoteEvent` on the bus.
- Every reply is validated before it is returned.
- On failure a method raises `RpcError`, with one of these codes:

  | Code                  | Cause                                         |
  |-----------------------|-----------------------------------------------|
  | `NOT_FOUND`           | Unknown note                                  |
  | `FAILED_PRECONDITION` | Note already deleted                          |
  | `INVALID_ARGUMENT`    | Invalid data or invalid uuid; an `ErrorDetails` entry holds the cause |
  | `INTERNAL`            | Anything else                                 |

`subscribe_to_events(send, cancel)` first calls `send` with a health
`EventResponse`. It then sends one note `EventResponse` for each event taken
from the bus. When `cancel` is set, it returns quietly. Any other failure is
logged and raised as an `INTERNAL` `RpcError`.

## Interceptors

- `auth_unary_interceptor()` returns `intercept(request, metadata, method, handler)`.
  It raises an `UNAUTHENTICATED` `RpcError` in these cases:
  - `metadata` is `None`;
  - the metadata has no `authorization` entry;
  - the `authorization` entry is empty.
- `logging_unary_interceptor(log)` logs the start of each call. It also logs
  the outcome and the duration in milliseconds.
- `logging_stream_interceptor(log)` logs the start and end of each streaming
  call. It passes the handler a `LoggingStream`, which logs every message that
  is sent or received.

## Client gateway and HTTP front end

`NoteGateway(log, client)` calls the note service through `client`. The
client must have these methods:

- `create(request, metadata)`
- `get_by_id(request, metadata)`
- `get_multi(metadata)`
- `delete_by_id(request, metadata)`

Each gateway method takes an optional `token`. The token is sent as the
metadata `{"authorization": [token]}`. RPC status codes are turned back into
domain errors by `map_error_rpc`.

`HttpNoteHandler(log, gateway)` serves JSON requests. `NoteRouter(handler)`
routes them and is itself a WSGI application:

| Method | Path               | Success               |
|--------|--------------------|-----------------------|
| GET    | `/notes/v1/`       | 200, list of notes    |
| GET    | `/notes/v1/{uuid}` | 200, one note         |
| POST   | `/notes/v1/`       | 201, the created note |
| DELETE | `/notes/v1/{uuid}` | 200, the deleted note |

Any other path returns a plain-text 404. Any other method on a known path
returns 405.

A creation body looks like `{"title": "...", "description": "..."}`. The
title and description are trimmed first, then checked against these rules:

- the title must not be empty;
- the title must be shorter than 50 characters;
- the description must be shorter than 255 characters.

A note in a response has these fields:

- `uuid`
- `title`
- `description`
- `is_delete`
- `created_at`, an RFC 3339 time
- `updated_at`, an RFC 3339 time

Errors come back as `{"error": "<message>"}`:

| Status | Cause                                          |
|--------|------------------------------------------------|
| 400    | Invalid data, or an invalid or nil uuid        |
| 401    | The note service reported no authentication    |
| 404    | Unknown note                                   |
| 410    | Note already deleted                           |
| 500    | Internal failures                              |

An `Authorization` header, for example `Authorization: Bearer token`, is
passed to the gateway as the token.

`HTTPServer(log, app, env)` serves a WSGI application at `env.host` and
`env.port`, where `env` is a `ClientEnv`. `start_gracefully(stop)` works like
this:

1. It serves on background threads until the `threading.Event` `stop` is set.
2. It then shuts down, allowing up to five seconds.
3. `ready` is set once startup has been attempted, and `address` gives the
   bound host and port.

### Wiring the layers in one process

```python
import threading

from notekeeper.config import ClientEnv
from notekeeper.eventbus import EventBus
from notekeeper.gateway import NoteGateway
from notekeeper.handler import NoteHandler
from notekeeper.httpapi import HttpNoteHandler
from notekeeper.httpserver import HTTPServer
from notekeeper.interceptors import auth_unary_interceptor
from notekeeper.logger import AppLogger
from notekeeper.repository import NoteRepository
from notekeeper.router import NoteRouter
from notekeeper.usecase import NoteUseCase


class InProcessClient:
    def __init__(self, service):
        self._service = service
        self._auth = auth_unary_interceptor()

    def create(self, request, metadata):
        return self._auth(request, metadata, "Create", self._service.create)

    def get_by_id(self, request, metadata):
        return self._auth(request, metadata, "GetByID", self._service.get_by_id)

    def get_multi(self, metadata):
        return self._auth(None, metadata, "GetMulti", lambda _: self._service.get_multi())

    def delete_by_id(self, request, metadata):
        return self._auth(request, metadata, "DeleteByID", self._service.delete_by_id)


log = AppLogger()
service = NoteHandler(log, EventBus(log, 3), NoteUseCase(log, NoteRepository(log)))
router = NoteRouter(HttpNoteHandler(log, NoteGateway(log, InProcessClient(service))))

stop = threading.Event()
server = HTTPServer(log, router, ClientEnv(host="localhost", port="8080"))
server.start_gracefully(stop)  # blocks until stop.set() is called elsewhere
```

## Configuration

`setup_server_env(log, environ=None)` reads its variables from `environ`, or
from `os.environ` if `environ` is not given:

- `GRPC_PORT`.
- `MAX_CONNECTION_IDLE`, `MAX_CONNECTION_AGE`, `MAX_CONNECTION_AGE_GRACE`,
  `TIME` and `TIMEOUT`. These are durations such as `30s` or `1m30s`; a value
  that cannot be parsed becomes zero.
- `CAPACITY`. If it is not an integer, it defaults to 3.

`parse_duration(text)` parses such durations into `timedelta`s. The units are
`ns`, `us`, `ms`, `s`, `m` and `h`. It raises `ValueError` on malformed input.

`setup_client_env(log, environ=None)` reads these variables:

| Variable      | Default     |
|---------------|-------------|
| `CLIENT_HOST` | `localhost` |
| `CLIENT_PORT` | `8080`      |
| `GRPC_HOST`   | `localhost` |
| `GRPC_PORT`   | `50051`     |

`setup_parameters(*options)` applies the options `with_port`,
`with_max_connection_idle`, `with_max_connection_age`,
`with_max_connection_age_grace`, `with_time` and `with_timeout` to a
`ServerParameters`. An empty port falls back to `8080`. A zero duration
leaves that setting unchanged.

## What the package does not do

- It has no network transport for the RPC-style note service.
  - `NoteHandler` and the interceptors are plain Python callables.
  - The port and keepalive settings in `ServerParameters` are not used by any
    server here.
  - To reach the service over a network, supply your own client object for
    `NoteGateway`.
- It installs no command.
  - The services are put together in code, as in the example above.
  - `.env` files are not read.
- Notes live in memory only and are lost when the process exits.