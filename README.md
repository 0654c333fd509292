# tennisprice

Prices tennis betting markets by simulating matches point by point.
Given each player's probability of winning a point on serve, it plays a
best-of-3 or best-of-5 match many times over and turns the outcomes into
probabilities for:

- the moneyline (who wins the match),
- set handicaps and game handicaps,
- set totals and game totals (over/under).

It has no dependencies beyond the standard library.

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Running the server

```
tennisprice
```

The server listens on all interfaces, on port 8000 or on the port given in
the `GOTENNIS_PORT` environment variable. It stops on Ctrl+C or SIGTERM.
If the port is not a number or cannot be bound, the command exits with
`Server failed to start: ...`. It takes no options besides `--help`.

### Pricing a match

```
GET /?p1=0.65&p2=0.60&bestof=3&simulations=100000
```

Any path other than `/stats`, and any HTTP method, is answered this way.

- `p1`, `p2`: each player's point-win probability on serve, from 0 to 1.
- `bestof`: `3` or `5`.
- `simulations`: optional, defaults to 1,000,000; values that are not
  positive integers fall back to the default.

The response is JSON holding `Moneyline`, `SetHandicaps`, `GameHandicaps`,
`SetOU` and `GameOU`. Each entry carries `Market` (`ML`, `AH` or `OU`),
`Line` (for example `"ml"`, `"-1.5"`, `"20.5"`), `probA` and `probB`.
A missing or malformed parameter, a `bestof` other than 3 or 5, or a
probability outside 0 to 1 gets a 400 response with a plain-text message.

The lines offered are:

| Market        | Best of 3              | Best of 5              |
|---------------|------------------------|------------------------|
| Set handicaps | -1.5 to 1.5            | -2.5 to 2.5            |
| Game handicaps| -8.5 to 8.5            | -12.5 to 12.5          |
| Set totals    | 2.5                    | 3.5, 4.5               |
| Game totals   | 12.5 to 36.5           | 18.5 to 60.5           |

Each range steps by one.

### Request statistics

```
GET /stats
```

This returns a JSON summary of the last 1000 pricing requests that reached
the simulation: `total_requests`, `success_count`, `error_count`,
`avg_simulations`, `avg_simulation_time_ms` and `avg_response_time_ms`.
Requests rejected with a 400 are not counted.

## Using it as a library

```python
import random

from tennisprice.sim import simulate_match, game_win_probability
from tennisprice.markets import moneyline, game_totals
from tennisprice.server import derive_probabilities

matches = simulate_match(0.65, 0.60, 3, 20_000, random.Random(7))
print(moneyline(matches))
print(game_totals(matches, 3)[:3])
print(game_win_probability(0.7))

result = derive_probabilities(matches, 3)
print(result.to_dict()["Moneyline"])
```

- `tennisprice.sim` plays matches: `simulate_match`,
  `simulate_single_match`, `simulate_set`, `a_wins_tiebreak`,
  `tiebreak_win_probability` and `game_win_probability`. Every simulating
  function takes an optional `random.Random` for reproducible results.
  `simulate_match` raises `InvalidBestOfError` for any `best_of` other
  than 3 or 5. Players alternate serving first in each set, and each
  `SimulatedSet` score is given from the side of that set's first server.
- `tennisprice.markets` turns `SimulatedMatch` lists into `Probability`
  values: `moneyline`, `set_handicap(s)`, `game_handicap(s)`,
  `set_total(s)`, `game_total(s)`, plus `match_games` and `game_spread`.
  An empty list of matches gives NaN probabilities.
- `tennisprice.server` holds `derive_probabilities`, `parse_query`,
  `handle_simulation`, `handle_stats`, `make_server` and the `RequestStats`
  record, so the service can be embedded or called without a socket.

## What it does not do

The server keeps its statistics in memory only; they are lost when it
stops. There is no authentication, TLS or rate limiting.