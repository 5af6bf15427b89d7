from fastapi.testclient import TestClient
from civicsense.main import app

with TestClient(app) as client:
    print('ROOT:')
    print(client.get('/').json())

    print('\nHEALTH:')
    print(client.get('/health').json())

    print('\nDB HEALTH:')
    try:
        resp = client.get('/health/db')
        print(resp.status_code)
        try:
            print(resp.json())
        except Exception:
            print(resp.text)
    except Exception as e:
        print('DB call raised exception:', e)

    print('\nPUBLIC REPORTS:')
    resp = client.get('/reports', params={'limit': 5})
    print(resp.status_code, [r.get('tracking_id') for r in resp.json()])

    print('\nADMIN LOGIN:')
    resp = client.post('/auth/login', json={'username': 'admin', 'password': 'admin123'})
    print(resp.status_code)
    if resp.ok:
        headers = {'Authorization': f"Bearer {resp.json()['token']}"}
        print('\nTEAMS:')
        print([(t['name'], t['available_capacity']) for t in client.get('/teams', headers=headers).json()])
        print('\nMOST COMMON (week):')
        print(client.get('/analytics/most-common', headers=headers).json())

    print('\nNOTIFICATIONS:')
    print(client.get('/notifications/status').json())
