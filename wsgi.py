# ==============================================================================
# WSGI Entry Point - Para Gunicorn en la terminal/servidor
# ==============================================================================
# USO:
#   gunicorn wsgi:app --bind 127.0.0.1:5000
#
# La configuración se lee del entorno (POS_*), ver inventory_pos/config.py.
# Un solo worker: el store vive en memoria del proceso.
# ==============================================================================

from inventory_pos.main import create_app

app = create_app()

if __name__ == '__main__':
    app.run(host='127.0.0.1', port=5000)
