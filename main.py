import cloudhub


@cloudhub.register_service("echo")
def echo_service(settings):
    # Stand-in for a real client: returns the settings it was built with
    return settings


def main():
    # Example usage of the facade
    cloudhub.configure().project_id = "shared-project"

    hub = cloudhub.new(retries=3, timeout=30)
    other = cloudhub.new("other-project", {"type": "service_account"})

    print(f"Default echo: {hub.echo()}")
    print(f"Other echo: {other.service('echo', scope='read-only')}")

if __name__ == "__main__":
    main()
