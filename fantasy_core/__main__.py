"""Entry point: python -m fantasy_core"""

from fantasy_core.logging_config import setup_logging

setup_logging()

from fantasy_core.api import create_app
from fantasy_core.config import server_cfg

app = create_app()
app.run(host=server_cfg.host, port=server_cfg.port, debug=False, threaded=True)
