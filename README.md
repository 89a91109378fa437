# rpckit

Building blocks for JSON-RPC 2.0 servers, using only the standard library
(Python 3.10 or later).

- **Request handling** (`rpckit.pubsub.handler.PubSubHandler`): a JSON-RPC 2.0
  handler that supports methods, notifications, aliases, batches and
  subscriptions.
- **Typed method wrappers** (`rpckit.auto_args`, `rpckit.delegates`): these
  turn plain Python callables into RPC methods. The wrappers check and unpack
  `params` and convert results to JSON values. An optional last argument is
  passed as a `Trailing`. Methods are grouped in an `IoDelegate`.
- **Publish-subscribe** (`rpckit.pubsub`):
  - `Session`, `Subscriber`, `Sink` and `SubscriptionId` provide subscribe and
    unsubscribe method pairs.
  - `rpckit.typed_pubsub` sends notifications as `result` or `error` payloads.
- **Host and CORS validation** (`rpckit.hosts`, `rpckit.cors`): these match
  `Host` and `Origin` headers against allow-lists. Patterns may use
  case-insensitive wildcards.
- **Transports**:
  - a threaded HTTP server (`rpckit.http.server`);
  - a line-per-request stdin/stdout server (`rpckit.stdio`).
- **Helpers**:
  - an asyncio event loop on its own thread (`rpckit.reactor.EventLoop`);
  - a registry for pushing messages to connected peers
    (`rpckit.tcp.dispatch.Dispatcher`);
  - an abstract `rpckit.session.SessionStats` hook.

## Installation

```
pip install .
```

## Handling requests

```python
from rpckit.pubsub.handler import PubSubHandler

io = PubSubHandler()
io.add_method("say_hello", lambda params: "hello")

io.handle_request_sync('{"jsonrpc":"2.0","id":1,"method":"say_hello"}')
# '{"jsonrpc":"2.0","result":"hello","id":1}'
```

`handle_request(text, meta=None)` returns a `concurrent.futures.Future` of the
response text. The response is `None` for a notification.

## Typed methods

```python
from rpckit.auto_args import Trailing, wrap_method
from rpckit.delegates import IoDelegate

class Calc:
    def add(self, a, b):
        return a + b

    def mul(self, a, b: Trailing):
        return a * b.unwrap_or(1)

delegate = IoDelegate(Calc())
delegate.add_method("add", wrap_method(Calc.add, 2))
delegate.add_method("mul", wrap_method(Calc.mul, 1, trailing=True))
delegate.add_alias("plus", "add")
io.extend_with(delegate)
```

Each wrapper raises an invalid-params error, code -32602, when the wrong number
of params arrives:

- `wrap_method(func, arity, trailing)` calls `func(base, *args)`;
- `wrap_meta_method` calls `func(base, meta, *args)`;
- `wrap_subscribe` calls `func(base, meta, subscriber, *args)`.

Up to six required params are supported.

## Subscriptions

```python
from rpckit.pubsub.types import SubscriptionId

def subscribe(params, meta, subscriber):
    sink = subscriber.assign_id(SubscriptionId(5))
    sink.notify([10])

io.add_subscription(
    "hello",
    ("hello_subscribe", subscribe),
    ("hello_unsubscribe", lambda sub_id: True),
)
```

The request metadata must provide `session()`. A `Session` is metadata of that
kind. Closing a session, or letting it be garbage-collected, unsubscribes its
active subscriptions. Without a session, subscribing fails with error -32090.

A subscriber that the handler discards without assigning an id is rejected with
error -32091.

## HTTP server

```python
from rpckit.cors import AccessControlAllowOrigin
from rpckit.hosts import DomainsValidation
from rpckit.http.server import ServerBuilder

server = (
    ServerBuilder(io)
    .threads(3)
    .cors(DomainsValidation.allow_only([AccessControlAllowOrigin.NULL]))
    .start_http("127.0.0.1:3030")
)
server.wait()
```

The server checks each request in this order:

1. It accepts only `POST` and `OPTIONS`.
2. It validates `Host` when allowed hosts are configured. The bound address is
   always allowed.
3. It validates `Origin` against the CORS list.
4. It requires `Content-Type: application/json`.

Responses end with a newline. Each connection serves one request.

## stdio server

```python
import sys
from rpckit.stdio import ServerBuilder

ServerBuilder(io).build(sys.stdin, sys.stdout)
```

The server reads one request per line until EOF and writes one response line
for each request. The line is empty when the request produces no response.

## Host validation

```python
from rpckit.hosts import Host, is_host_valid

allowed = [Host.parse("*.web3.site:*"), Host.parse("parity.io")]

is_host_valid("parity.web3.site:8180", allowed)   # True
is_host_valid("example.com", allowed)             # False
is_host_valid(None, allowed)                      # False: no Host header
is_host_valid("anything", None)                   # True: validation disabled
```

## CORS

```python
from rpckit.cors import AccessControlAllowOrigin, get_cors_allow_origin

allowed = [
    AccessControlAllowOrigin.from_string("http://*.io"),
    AccessControlAllowOrigin.from_string("null"),
]

result = get_cors_allow_origin("http://parity.io", None, allowed)
print(result.value_or_none())   # http://parity.io
```

The result is an `AllowCors` in one of three states:

- not required, when no `Origin` was sent or it names the server itself;
- invalid;
- ok, carrying the header value to send back.

`get_cors_allow_headers` does the same for request headers.

## What is not included

There is no TCP server that accepts connections. `rpckit.tcp.dispatch` only
keeps a registry of peer senders (`SenderChannels`). A `Dispatcher` pushes
messages through that registry. Your own transport must register and remove
peers in it.

There is no command-line program.

## Running the tests

```
pip install ".[test]"
pytest
```