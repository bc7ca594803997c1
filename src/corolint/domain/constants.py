"""
Well-known names of the cooperative-concurrency library the rules reason about.

Everything here is name-based: the engine never resolves types, so a user
declaration shadowing one of these names is matched as if it were the real
one. Hosts extend (never replace) the extensible sets through EngineConfig.
"""

DOC_BASE_URL: str = (
    "https://github.com/santimattius/structured-coroutines/blob/main/docs/BEST_PRACTICES_COROUTINES.md"
)

# Task launchers start a new concurrently scheduled unit of work on a scope.
TASK_LAUNCHERS: frozenset[str] = frozenset({"launch", "async"})
VALUE_LAUNCHERS: frozenset[str] = frozenset({"async"})

STRUCTURED_BUILDERS: frozenset[str] = frozenset({"coroutineScope", "supervisorScope"})
CONTEXT_SWITCHERS: frozenset[str] = frozenset({"withContext"})
BLOCKING_BRIDGES: frozenset[str] = frozenset({"runBlocking"})

# Builders whose trailing lambda is a launcher/scope/context-switch body.
TASK_LAUNCHER_LAMBDA_BUILDERS: frozenset[str] = (
    TASK_LAUNCHERS | STRUCTURED_BUILDERS | CONTEXT_SWITCHERS
)

# Builders whose trailing lambda executes in suspend context.
SUSPEND_LAMBDA_BUILDERS: frozenset[str] = TASK_LAUNCHER_LAMBDA_BUILDERS | BLOCKING_BRIDGES | frozenset(
    {
        "runTest",
        "produce",
        "flow",
        "channelFlow",
        "withTimeout",
        "withTimeoutOrNull",
        "repeatOnLifecycle",
    }
)

# Builders that accept an executor selector / context element as an argument.
CONTEXT_ACCEPTING_BUILDERS: frozenset[str] = TASK_LAUNCHERS | CONTEXT_SWITCHERS

COOPERATION_POINTS: frozenset[str] = frozenset(
    {
        "yield",
        "ensureActive",
        "delay",
        "suspendCancellableCoroutine",
        "withTimeout",
        "withTimeoutOrNull",
    }
)

# Calls known to suspend; used where a finally block may be cut short by cancellation.
KNOWN_SUSPENDING_CALLS: frozenset[str] = frozenset(
    {
        "delay",
        "yield",
        "withContext",
        "withTimeout",
        "withTimeoutOrNull",
        "await",
        "awaitAll",
        "join",
        "joinAll",
        "cancelAndJoin",
        "suspendCancellableCoroutine",
        "suspendCoroutine",
        "coroutineScope",
        "supervisorScope",
        "send",
        "receive",
        "emit",
    }
)

UNSCOPED_GLOBAL: str = "GlobalScope"
SCOPE_CONSTRUCTORS: frozenset[str] = frozenset({"CoroutineScope"})
FRAMEWORK_SCOPE_PROPERTIES: frozenset[str] = frozenset({"viewModelScope", "lifecycleScope"})
FRAMEWORK_SCOPE_FACTORIES: frozenset[str] = frozenset({"rememberCoroutineScope"})
SCOPE_OPT_IN_ANNOTATION: str = "StructuredScope"

TOKEN_CONSTRUCTORS: frozenset[str] = frozenset({"Job", "SupervisorJob"})

EXECUTOR_HOLDER: str = "Dispatchers"
CALLER_THREAD_EXECUTOR: str = "Unconfined"
MAIN_EXECUTOR: str = "Main"

NON_CANCELLABLE: str = "NonCancellable"
CANCELLATION_SIGNAL: str = "CancellationException"
BROAD_CATCH_TYPES: frozenset[str] = frozenset(
    {
        "Exception",
        "Throwable",
        "java.lang.Exception",
        "java.lang.Throwable",
        "kotlin.Exception",
        "kotlin.Throwable",
    }
)

CANCEL_CALLS: frozenset[str] = frozenset({"cancel"})
CHANNEL_CONSTRUCTORS: frozenset[str] = frozenset({"Channel"})
AUTO_CLOSING_PRODUCERS: frozenset[str] = frozenset({"produce"})
CHANNEL_CLOSE_CALLS: frozenset[str] = frozenset({"close"})
EXCLUSIVE_CONSUMERS: frozenset[str] = frozenset({"consumeEach"})
AWAIT_PREFIX: str = "await"
AWAIT_ALL_CALLS: frozenset[str] = frozenset({"awaitAll"})

FLOW_BUILDERS: frozenset[str] = frozenset({"flow"})
FLOW_COLLECTORS: frozenset[str] = frozenset({"collect", "collectLatest", "collectIndexed"})
LIFECYCLE_LAUNCHERS: frozenset[str] = frozenset(
    {"launch", "launchWhenStarted", "launchWhenCreated", "launchWhenResumed"}
)
LIFECYCLE_SCOPE: str = "lifecycleScope"
LIFECYCLE_SAFE_CALLS: frozenset[str] = frozenset({"repeatOnLifecycle", "flowWithLifecycle"})
LIFECYCLE_OWNER_TYPES: frozenset[str] = frozenset(
    {
        "LifecycleOwner",
        "ComponentActivity",
        "FragmentActivity",
        "AppCompatActivity",
        "Fragment",
        "DialogFragment",
        "LifecycleService",
    }
)
VIEW_MODEL_SCOPE: str = "viewModelScope"
VIEW_MODEL_TYPES: frozenset[str] = frozenset({"ViewModel", "AndroidViewModel"})

ENTRY_POINT_NAMES: frozenset[str] = frozenset({"main"})
TEST_ANNOTATIONS: frozenset[str] = frozenset({"Test", "ParameterizedTest", "RepeatedTest"})
TEST_FILE_SUFFIXES: tuple[str, ...] = ("Test", "Tests", "Spec")
TEST_PATH_MARKERS: tuple[str, ...] = ("/test/", "/androidTest/")

# "Receiver.method" or fully qualified "pkg.Receiver.method"; matched by suffix.
BLOCKING_CALLS: frozenset[str] = frozenset(
    {
        "Thread.sleep",
        "java.lang.Thread.sleep",
        "Object.wait",
        "java.lang.Object.wait",
        "InputStream.read",
        "java.io.InputStream.read",
        "OutputStream.write",
        "java.io.OutputStream.write",
        "Reader.read",
        "java.io.Reader.read",
        "Writer.write",
        "java.io.Writer.write",
        "BufferedReader.readLine",
        "java.io.BufferedReader.readLine",
        "Statement.execute",
        "Statement.executeQuery",
        "Statement.executeUpdate",
        "PreparedStatement.execute",
        "PreparedStatement.executeQuery",
        "PreparedStatement.executeUpdate",
        "Connection.prepareStatement",
        "ResultSet.next",
        "Call.execute",
        "okhttp3.Call.execute",
        "retrofit2.Call.execute",
        "BlockingQueue.take",
        "BlockingQueue.put",
        "CountDownLatch.await",
        "Semaphore.acquire",
        "Future.get",
        "Files.readAllBytes",
        "java.nio.file.Files.readAllBytes",
        "Files.readAllLines",
        "java.nio.file.Files.readAllLines",
        "Files.write",
        "java.nio.file.Files.write",
    }
)
