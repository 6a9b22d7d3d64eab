from brocante import create_app

app = create_app()
