"""Registry of connected peers and a dispatcher that pushes messages to them."""