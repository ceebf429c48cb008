from app.records import create_app

app = create_app()
