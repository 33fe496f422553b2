from datetime import datetime, timezone

from exam_service.application.exams.models import ExamDefinition, Question

# ---------------------------
# Kubernetes basics
# ---------------------------
BASIC_KUBERNETES_QUESTIONS = (
    Question(
        id="q1",
        type="multiple_choice",
        prompt="What is the smallest deployable unit in a Kubernetes cluster?",
        options=("Pod", "Container", "Node", "Service"),
        correct_answer="Pod",
        explanation=(
            "A Pod groups one or more containers and is the smallest unit "
            "Kubernetes deploys and scales."
        ),
        points=10,
        difficulty=1,
        tags=("Pod", "Basic"),
    ),
    Question(
        id="q2",
        type="multiple_choice",
        prompt="Which resources are shared by the containers of a Pod? (select all that apply)",
        options=("Network", "Storage", "Process namespace", "User namespace"),
        correct_answer=("Network", "Storage"),
        explanation=(
            "Containers in a Pod share the network namespace and storage volumes; "
            "process and user namespaces stay separate."
        ),
        points=15,
        difficulty=2,
        tags=("Pod", "Network", "Storage"),
    ),
    Question(
        id="q3",
        type="kubectl_command",
        prompt="Write the kubectl command that creates a Pod named nginx from the nginx:latest image.",
        correct_answer="kubectl run nginx --image=nginx:latest",
        explanation="kubectl run creates a Pod; --image selects the container image.",
        points=20,
        difficulty=2,
        tags=("kubectl", "Pod", "Commands"),
    ),
)

# ---------------------------
# YAML authoring
# ---------------------------
YAML_GENERATION_QUESTIONS = (
    Question(
        id="q4",
        type="yaml_generation",
        prompt=(
            'Write the YAML for a Deployment named "nginx-deployment" running '
            "3 replicas of nginx:latest."
        ),
        correct_answer="""apiVersion: apps/v1
kind: Deployment
metadata:
  name: nginx-deployment
spec:
  replicas: 3
  selector:
    matchLabels:
      app: nginx
  template:
    metadata:
      labels:
        app: nginx
    spec:
      containers:
      - name: nginx
        image: nginx:latest
        ports:
        - containerPort: 80""",
        explanation=(
            "A Deployment keeps the requested number of Pod replicas running. "
            "The selector must match template.metadata.labels."
        ),
        points=25,
        difficulty=3,
        tags=("Deployment", "YAML", "Replica"),
    ),
    Question(
        id="q5",
        type="yaml_generation",
        prompt=(
            'Write the YAML for a ClusterIP Service named "nginx-service" exposing '
            "nginx-deployment on port 80."
        ),
        correct_answer="""apiVersion: v1
kind: Service
metadata:
  name: nginx-service
spec:
  selector:
    app: nginx
  ports:
  - protocol: TCP
    port: 80
    targetPort: 80
  type: ClusterIP""",
        explanation=(
            "A Service gives network access to Pods. The selector picks the "
            "Deployment's Pods and port sets the service port."
        ),
        points=25,
        difficulty=3,
        tags=("Service", "YAML", "ClusterIP"),
    ),
)

# ---------------------------
# kubectl practice
# ---------------------------
PRACTICAL_KUBECTL_QUESTIONS = (
    Question(
        id="q6",
        type="kubectl_command",
        prompt="Write the kubectl command listing the Pods of every namespace.",
        correct_answer="kubectl get pods --all-namespaces",
        explanation="--all-namespaces lists resources across all namespaces.",
        points=15,
        difficulty=2,
        tags=("kubectl", "Pod", "Namespace"),
    ),
    Question(
        id="q7",
        type="kubectl_command",
        prompt="Write the kubectl command scaling nginx-deployment to 5 replicas.",
        correct_answer="kubectl scale deployment nginx-deployment --replicas=5",
        explanation="kubectl scale changes the replica count of a Deployment.",
        points=20,
        difficulty=2,
        tags=("kubectl", "Scale", "Deployment"),
    ),
)

# ---------------------------
# ECS to Kubernetes
# ---------------------------
ECS_VS_KUBERNETES_QUESTIONS = (
    Question(
        id="q8",
        type="multiple_choice",
        prompt="Which Kubernetes object corresponds to an AWS ECS TaskDefinition?",
        options=("Pod", "Deployment", "Service", "ConfigMap"),
        correct_answer="Pod",
        explanation=(
            "A TaskDefinition describes how containers run, much like a Pod manifest."
        ),
        points=15,
        difficulty=2,
        tags=("ECS", "Comparison", "Pod"),
    ),
    Question(
        id="q9",
        type="multiple_choice",
        prompt="Which combination of Kubernetes features is closest to an AWS ECS Service?",
        options=(
            "Pod + Service",
            "Deployment + Service",
            "ReplicaSet + Service",
            "StatefulSet + Service",
        ),
        correct_answer="Deployment + Service",
        explanation=(
            "An ECS Service keeps a number of Tasks running and load balances them: "
            "a Deployment manages replicas and a Service balances traffic."
        ),
        points=20,
        difficulty=3,
        tags=("ECS", "Comparison", "Deployment", "Service"),
    ),
)


def _date(day: int) -> datetime:
    return datetime(2025, 1, day, tzinfo=timezone.utc)


SAMPLE_EXAMS = (
    ExamDefinition(
        id="exam-1",
        title="Kubernetes Basics",
        description="Core Kubernetes concepts: Pods, Services and Deployments.",
        category="concept",
        difficulty=1,
        time_limit_minutes=30,
        passing_score_percent=70,
        questions=BASIC_KUBERNETES_QUESTIONS,
        tags=("Basic", "Pod", "Service", "Deployment"),
        created_at=_date(1),
        updated_at=_date(1),
    ),
    ExamDefinition(
        id="exam-2",
        title="Writing YAML Manifests",
        description="Evaluates writing Kubernetes YAML manifests.",
        category="yaml",
        difficulty=3,
        time_limit_minutes=45,
        passing_score_percent=80,
        questions=YAML_GENERATION_QUESTIONS,
        prerequisites=("exam-1",),
        tags=("YAML", "Deployment", "Service", "Configuration"),
        created_at=_date(2),
        updated_at=_date(2),
    ),
    ExamDefinition(
        id="exam-3",
        title="kubectl in Practice",
        description="Hands-on cluster operations with kubectl.",
        category="practical",
        difficulty=2,
        time_limit_minutes=25,
        passing_score_percent=75,
        questions=PRACTICAL_KUBECTL_QUESTIONS,
        prerequisites=("exam-1",),
        tags=("kubectl", "Commands", "Practice"),
        created_at=_date(3),
        updated_at=_date(3),
    ),
    ExamDefinition(
        id="exam-4",
        title="Kubernetes Comprehensive Exercise",
        description="Advanced exam covering all Kubernetes topics.",
        category="practical",
        difficulty=4,
        time_limit_minutes=60,
        passing_score_percent=85,
        questions=BASIC_KUBERNETES_QUESTIONS + YAML_GENERATION_QUESTIONS + PRACTICAL_KUBECTL_QUESTIONS,
        prerequisites=("exam-1", "exam-2", "exam-3"),
        tags=("Comprehensive", "Advanced", "YAML", "kubectl"),
        max_attempts=3,
        created_at=_date(4),
        updated_at=_date(4),
    ),
    ExamDefinition(
        id="exam-ecs-transition",
        title="AWS ECS to Kubernetes",
        description="Maps AWS ECS concepts onto Kubernetes for engineers moving over.",
        category="concept",
        difficulty=3,
        time_limit_minutes=40,
        passing_score_percent=80,
        questions=ECS_VS_KUBERNETES_QUESTIONS + BASIC_KUBERNETES_QUESTIONS[:2],
        tags=("ECS", "Migration", "Comparison", "AWS"),
        created_at=_date(5),
        updated_at=_date(5),
    ),
)
