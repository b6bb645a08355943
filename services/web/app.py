from greeter.frontend import create_frontend_app
from greeter.settings import load_settings

# uvicorn services.web.app:app --port 80
app = create_frontend_app(load_settings())
