from locust import HttpUser, task, between


class CryptoGatewayUser(HttpUser):
    # Wait time between tasks to simulate real users
    wait_time = between(1, 3)  # seconds

    @task(5)
    def list_assets(self):
        """Hit the cached asset list; most calls should be served from cache."""
        self.client.get("/api/crypto", name="List Crypto Assets")

    @task(1)
    def health(self):
        self.client.get("/health", name="Health")
