from consent_relay.cli import app

app()
