from supplydesk import create_app

app = create_app()
