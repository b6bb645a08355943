from greeter.backend import create_backend_app
from greeter.settings import load_settings

# uvicorn services.api.app:app --port 8080
app = create_backend_app(load_settings())
