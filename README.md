# mcpchat

A chat server with many rooms, built on aiohttp. Clients connect over
WebSocket, join a room by id and exchange messages. When an API key for an
OpenAI-compatible chat-completion endpoint is set, an AI assistant answers in
the room as well.

## Installation

```
pip install .
```

## Running

```
mcpchat
```

The command reads its settings, builds the application from the `templates`
and `static` directories of the working directory, and serves it until it is
stopped. It exits with status 1 if the server cannot start, for example when
`templates` holds no files or the port is not a number.

Settings come from the environment, and from a `.env` file in the working
directory if one exists (values already in the environment win). Empty values
fall back to the defaults; an integer setting that does not parse becomes 0.

| Variable               | Default         | Meaning                                         |
|------------------------|-----------------|-------------------------------------------------|
| `HOST`                 | `localhost`     | Address to listen on                            |
| `PORT`                 | `8080`          | Port to listen on                               |
| `OPENAI_API_KEY`       | (empty)         | Key for the assistant; empty disables it        |
| `OPENAI_MODEL`         | `gpt-3.5-turbo` | Model the assistant uses                        |
| `MAX_MESSAGE_LENGTH`   | `1000`          | Longest message accepted, in UTF-8 bytes        |
| `MAX_CLIENTS_PER_ROOM` | `50`            | Clients allowed in a room at once               |

Example `.env`:

```
PORT=9000
OPENAI_API_KEY=placeholder
```

## What the package does not include

The package ships no chat web page and no static assets. `GET /` renders a
file named `chat.html` that you provide in the templates directory; in it,
`{{ .title }}` is replaced with `MCP Chat Server`. If `chat.html` is missing,
`GET /` answers 500. Files in the `static` directory, if it exists, are served
under `/static`.

Rooms and messages live in memory only and are lost when the server stops.

## HTTP API

All answers are JSON objects with a `success` field and either `data` or
`message`.

- `GET /api/rooms`: list the rooms with `id`, `name`, `client_count` and
  `created_at` (`data` is `null` when there are none)
- `POST /api/rooms` with `{"name": "..."}`: create a room (201), or 400 when
  the name is missing or empty
- `GET /api/rooms/{id}`: describe one room, or 404
- `DELETE /api/rooms/{id}`: remove a room and disconnect its clients
- `GET /api/stats`: `total_rooms`, `total_clients` and `gpt_available`

## WebSocket

Connect to `/ws?room_id=<id>&name=<name>`; add `&gpt=true` to mark the client
as an assistant. Both `room_id` and `name` are required (400 otherwise).

- A room that does not exist yet is created on first join.
- When the room is full the connection is closed.
- A client with the same name as one already in the room replaces it.
- Joins and leaves are posted to the room as `join` and `leave` messages.
- A newcomer receives up to the last 50 messages of the room.

Send JSON such as:

```json
{"type": "message", "content": "hello"}
```

`type` is `message` for a normal chat line, which the assistant also answers
when it is available, or `gpt_request` to ask the assistant directly (an
`error` message "GPT is not available" is posted when it is not). Other types
are ignored, as is text that is not a JSON object. Content longer than the
limit is refused with an `error` message "Message too long".

Every message from the server is JSON with `id`, `type` (`text`, `system`,
`gpt`, `join`, `leave`, `error`), `content`, `sender`, `room_id` and
`timestamp`, and `metadata` when it has any: the assistant's replies, sent by
`GPT Assistant`, carry `{"is_ai": true}`.

The assistant sees the last ten text messages of the room, answers in at most
150 tokens, and has 30 seconds to do so; if it fails, an `error` message is
posted instead.

## Using it as a library

```python
from mcpchat.config import load_config
from mcpchat.hub import Hub
from mcpchat.server import create_app

config = load_config({"PORT": "9000"})
app = create_app(config, Hub(config), static_dir="static", templates_dir="templates")
```

- `mcpchat.config`: `Config` and `load_config(env=None, dotenv_path=None)`.
- `mcpchat.message`: `MessageType`, `Message`, `ChatRequest`, `ChatResponse`.
- `mcpchat.client`: `Client`, a participant with a bounded outgoing queue.
- `mcpchat.room`: `Room`, members and history of one room.
- `mcpchat.gpt`: `GPTClient`, `GPTError` and `build_messages`.
- `mcpchat.hub`: `Hub`, which owns the rooms and routes chat requests.
- `mcpchat.server`: `create_app` and `main`.

`create_app` raises `FileNotFoundError` when the templates directory holds no
files.

## Development

```
pip install -e ".[test]"
pytest
```