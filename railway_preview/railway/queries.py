"""
GraphQL documents used against Railway's public API.

Several operations exist in more than one historical shape; each shape gets
its own constant so the strategy lists can name them.
"""

ENVIRONMENT_FIELDS = """
      id
      name
      projectId
      serviceInstances {
        edges {
          node {
            id
            serviceId
            serviceName
            domains {
              serviceDomains {
                id
                domain
              }
              customDomains {
                id
                domain
              }
            }
            latestDeployment {
              id
              url
              staticUrl
              status
            }
          }
        }
      }
"""

GET_ENVIRONMENT = (
    """
    query environment($id: String!) {
      environment(id: $id) {"""
    + ENVIRONMENT_FIELDS
    + """
      }
    }
"""
)

# --- listByProject shapes, newest first ---

LIST_ENVIRONMENTS_VIA_PROJECT = """
    query project($id: String!) {
      project(id: $id) {
        id
        name
        environments {
          edges {
            node {
              id
              name
              isEphemeral
            }
          }
        }
      }
    }
"""

LIST_ENVIRONMENTS_CONNECTION = """
    query environments($projectId: String!) {
      environments(projectId: $projectId) {
        edges {
          node {
            id
            name
            isEphemeral
          }
        }
      }
    }
"""

LIST_ENVIRONMENTS_FLAT = """
    query environments($projectId: String!) {
      environments(projectId: $projectId) {
        id
        name
        isEphemeral
      }
    }
"""

CREATE_ENVIRONMENT = """
    mutation environmentCreate($input: EnvironmentCreateInput!) {
      environmentCreate(input: $input) {
        id
        name
        projectId
      }
    }
"""

# Only sent when ephemeral environments are requested; schemas without
# ephemeral support reject isEphemeral.
CREATE_EPHEMERAL_ENVIRONMENT = """
    mutation environmentCreate($input: EnvironmentCreateInput!) {
      environmentCreate(input: $input) {
        id
        name
        projectId
        isEphemeral
      }
    }
"""

DELETE_ENVIRONMENT = """
    mutation environmentDelete($id: String!) {
      environmentDelete(id: $id)
    }
"""

# --- deploy shapes ---

SERVICE_INSTANCE_REDEPLOY = """
    mutation serviceInstanceRedeploy($environmentId: String!, $serviceId: String!) {
      serviceInstanceRedeploy(environmentId: $environmentId, serviceId: $serviceId)
    }
"""

ENVIRONMENT_TRIGGERS_DEPLOY = """
    mutation environmentTriggersDeploy($input: EnvironmentTriggersDeployInput!) {
      environmentTriggersDeploy(input: $input)
    }
"""

DEPLOYMENT_RESTART = """
    mutation deploymentRestart($id: String!) {
      deploymentRestart(id: $id)
    }
"""
