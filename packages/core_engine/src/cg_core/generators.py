from typing import Iterable, List

from cg_core.config import GeneratorConfig
from cg_core.relationships import FILL_IN
from cg_core.resolution import ResolvedColumn, ResolvedTable
from cg_core.templating import Artifact, CodeWriter, csharp_string

MODELS = "models"
VOCABULARIES = "vocabs"
CLUE_PRODUCERS = "clueproducers"
CRAWLER_CODE = "crawlerCode"

TRAVERSAL_ARTIFACT = "crawlerCode.cs"

VALIDATION_SUPPRESSIONS = [
    "RuleConstants.METADATA_001_Name_MustBeSet",
    "RuleConstants.PROPERTIES_001_MustExist",
    "RuleConstants.METADATA_002_Uri_MustBeSet",
    "RuleConstants.METADATA_003_Author_Name_MustBeSet",
    "RuleConstants.METADATA_005_PreviewImage_RawData_MustBeSet",
]


def model_file_name(table: ResolvedTable) -> str:
    return f"{table.canonical_name}.cs"


def vocabulary_file_name(table: ResolvedTable) -> str:
    return f"{table.canonical_name}Vocabulary.cs"


def clue_producer_file_name(table: ResolvedTable) -> str:
    return f"{table.canonical_name}ClueProducer.cs"


def _accessor(column: ResolvedColumn) -> str:
    raw = csharp_string(column.name)
    if column.is_identifier:
        return f"reader[{raw}].ToString()"
    if column.source_type == "string":
        return f"reader.GetStringValue({raw})"
    return f"reader.GetNullableValue<{column.source_type.rstrip('?')}>({raw})"


def _property_lines(writer: CodeWriter, type_name_pairs: Iterable[tuple]) -> None:
    for type_name, name in type_name_pairs:
        writer.line(f"public {type_name} {name} {{ get; private set; }}")


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------

def generate_model(table: ResolvedTable, config: GeneratorConfig) -> Artifact:
    artifact = Artifact(model_file_name(table), MODELS, table.name)
    name = table.canonical_name

    header = artifact.writer("header")
    header.lines([
        "using System;",
        "using System.ComponentModel;",
        "using System.Data;",
        f"using {config.namespace}.Core;",
        "",
    ])
    header.open(f"namespace {config.namespace}.Core.Models")

    declaration = artifact.writer("declaration", level=1)
    declaration.line(f"[DisplayName({csharp_string(table.name)})]")
    declaration.open(f"public class {name} : {config.base_class}")

    constructor = artifact.writer("constructor", level=2)
    constructor.open(f"public {name}(IDataReader reader) : base(reader)")
    constructor.open("if (reader == null)")
    constructor.line("throw new ArgumentNullException(nameof(reader));")
    constructor.close()
    constructor.line()
    for column in table.columns:
        constructor.line(f"{column.canonical_name} = {_accessor(column)};")
    constructor.close()

    properties = artifact.writer("properties", level=2)
    properties.line()
    _property_lines(properties, ((column.source_type, column.canonical_name) for column in table.columns))

    footer = artifact.writer("footer", level=2)
    footer.close()
    footer.close()
    return artifact


# ---------------------------------------------------------------------------
# Vocabulary
# ---------------------------------------------------------------------------

def vocabulary_key_expression(column: ResolvedColumn) -> str:
    expression = (
        f"new VocabularyKey({csharp_string(column.key)}, "
        f"VocabularyKeyDataType.{column.semantic_type}, "
        f"VocabularyKeyVisibility.{column.visibility.value})"
    )
    expression += f".WithDisplayName({csharp_string(column.display_name)})"
    if column.description:
        expression += f".WithDescription({csharp_string(column.description)})"
    return expression


def generate_vocabulary(table: ResolvedTable, config: GeneratorConfig) -> Artifact:
    artifact = Artifact(vocabulary_file_name(table), VOCABULARIES, table.name)
    name = table.canonical_name
    class_name = f"{name}Vocabulary"

    header = artifact.writer("header")
    header.lines(["using CluedIn.Core.Data;", "using CluedIn.Core.Data.Vocabularies;", ""])
    header.open(f"namespace {config.namespace}.Vocabularies")
    header.open(f"public class {class_name} : SimpleVocabulary")

    settings = artifact.writer("settings", level=2)
    settings.open(f"public {class_name}()")
    settings.line(f"VocabularyName = {csharp_string(f'{config.crawler_name} {name}')};")
    settings.line(f"KeyPrefix = {csharp_string(f'{config.key_prefix}.{name}')};")
    settings.line('KeySeparator = ".";')
    settings.line(f"Grouping = {table.category.grouping};")
    settings.line()

    group = artifact.writer("group", level=3)
    group.line(f"AddGroup({csharp_string(f'{table.category.label} Details')}, group =>")
    group.open()
    for column in table.columns:
        group.line(f"{column.canonical_name} = group.Add({vocabulary_key_expression(column)});")
    group.close(");")
    group.close()

    properties = artifact.writer("properties", level=2)
    properties.line()
    _property_lines(properties, (("VocabularyKey", column.canonical_name) for column in table.columns))

    footer = artifact.writer("footer", level=2)
    footer.close()
    footer.close()
    return artifact


# ---------------------------------------------------------------------------
# Clue producer
# ---------------------------------------------------------------------------

def generate_clue_producer(table: ResolvedTable, config: GeneratorConfig) -> Artifact:
    artifact = Artifact(clue_producer_file_name(table), CLUE_PRODUCERS, table.name)
    name = table.canonical_name
    class_name = f"{name}ClueProducer"
    entity_type = table.category.entity_type_path

    header = artifact.writer("header")
    header.lines([
        "using CluedIn.Core;",
        "using CluedIn.Core.Data;",
        "using CluedIn.Core.Data.Vocabularies;",
        "using CluedIn.Crawling.Factories;",
        "using CluedIn.Crawling.Helpers;",
        f"using {config.namespace}.Core;",
        f"using {config.namespace}.Core.Models;",
        f"using {config.namespace}.Vocabularies;",
        "using RuleConstants = CluedIn.Core.Constants.Validation.Rules;",
        "using System;",
        "using System.Linq;",
        "",
    ])
    header.open(f"namespace {config.namespace}.ClueProducers")
    header.open(f"public class {class_name} : BaseClueProducer<{name}>")
    header.line("private readonly IClueFactory _factory;")
    header.line()
    header.open(f"public {class_name}(IClueFactory factory)")
    header.line("_factory = factory;")
    header.close()
    header.line()
    header.open(f"protected override Clue MakeClueImpl({name} input, Guid id)")

    identity = artifact.writer("identity", level=3)
    identity.line(f"var clue = _factory.Create({entity_type}, {table.entity_code.expression}, id);")
    identity.line()
    identity.line("var data = clue.Data.EntityData;")
    identity.line()
    display = table.display_name_column.canonical_name if table.display_name_column else FILL_IN
    identity.line(f"data.Name = input.{display};")
    if table.extra_code is not None:
        identity.line(
            f"data.Codes.Add(new EntityCode({entity_type}, {config.crawler_name}Constants.CodeOrigin, "
            f"{table.extra_code.expression}));"
        )
    identity.line()

    edges = artifact.writer("edges", level=3)
    edges.line("// add edges")
    for link in table.foreign_keys:
        value = f"input.{link.column.canonical_name}"
        edges.open(f"if ({value} != null && !string.IsNullOrEmpty({value}.ToString()))")
        edges.line(
            f"_factory.CreateOutgoingEntityReference(clue, {link.target_entity_type}, "
            f"EntityEdgeType.AttachedTo, {value}, {value}.ToString());"
        )
        edges.close()
        edges.line()

    root = artifact.writer("root_edge", level=3)
    root.open("if (!data.OutgoingEdges.Any())")
    root.line("_factory.CreateEntityRootReference(clue, EntityEdgeType.PartOf);")
    root.close()
    root.line()

    properties = artifact.writer("properties", level=3)
    properties.line(f"var vocab = new {name}Vocabulary();")
    properties.line()
    for column in table.columns:
        properties.line(
            f"data.Properties[vocab.{column.canonical_name}] = input.{column.canonical_name}.PrintIfAvailable();"
        )
    properties.line()

    suppressions = artifact.writer("suppressions", level=3)
    suppressions.line("clue.ValidationRuleSuppressions.AddRange(new[]")
    suppressions.open()
    for index, rule in enumerate(VALIDATION_SUPPRESSIONS):
        separator = "," if index < len(VALIDATION_SUPPRESSIONS) - 1 else ""
        suppressions.line(f"{rule}{separator}")
    suppressions.close(");")
    suppressions.line()
    suppressions.line("return clue;")

    footer = artifact.writer("footer", level=3)
    footer.close()
    footer.close()
    footer.close()
    return artifact


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

def _filter_expression(key_column: str, value: str, quoted: bool) -> str:
    placeholder = "{%s}" % value
    if quoted:
        placeholder = f"'{placeholder}'"
    return f'$"WHERE {key_column} = {placeholder}"'


def write_traversal(writer: CodeWriter, table: ResolvedTable) -> None:
    writer.open(f"foreach (var obj in client.GetObject<{table.canonical_name}>())")
    for link in table.foreign_keys:
        value = f"obj.{link.column.canonical_name}"
        writer.open(f"if ({value} != null && !string.IsNullOrEmpty({value}.ToString()))")
        query = _filter_expression(link.base.key_column, value, link.column.quoted)
        writer.open(f"foreach (var subObj in client.GetObject<{link.base_canonical_name}>({query}))")
        writer.line("yield return subObj;")
        writer.close()
        writer.close()
        writer.line()
    writer.line("yield return obj;")
    writer.close()
    writer.line()


def generate_traversal(tables: Iterable[ResolvedTable], config: GeneratorConfig) -> Artifact:
    """One traversal artifact covering every table, one section per table in order."""
    artifact = Artifact(TRAVERSAL_ARTIFACT, CRAWLER_CODE)
    for table in tables:
        write_traversal(artifact.writer(table.canonical_name), table)
    return artifact


def generate_table_artifacts(table: ResolvedTable, config: GeneratorConfig) -> List[Artifact]:
    return [
        generate_model(table, config),
        generate_vocabulary(table, config),
        generate_clue_producer(table, config),
    ]
